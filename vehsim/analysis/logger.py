# Logging utilities

import logging
import csv
from pathlib import Path
from typing import Dict, List, Any, Optional
from datetime import datetime


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Setup logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path for logging

    Returns:
        Configured logger
    """
    logger = logging.getLogger("vehsim")
    logger.setLevel(getattr(logging, level.upper()))

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, level.upper()))
    console_format = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    # File handler
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_format = logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        )
        file_handler.setFormatter(file_format)
        logger.addHandler(file_handler)

    return logger


class TelemetryLogger:
    """Per-tick telemetry rows written to CSV.

    Rows are only kept while recording. Each session goes to its own file
    named ``<name>_session<k>.csv``.
    """

    def __init__(self, name: str, log_dir: Optional[Path] = None):
        """Initialize telemetry logger.

        Args:
            name: Logger name (used in the file name)
            log_dir: Directory for CSV files; None keeps rows in memory only
        """
        self.name = name
        self.log_dir = Path(log_dir) if log_dir is not None else None
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self.session = 0
        self.recording = False
        self._rows: List[Dict[str, Any]] = []
        self._csv_initialized = False
        self._fieldnames: List[str] = []

    @property
    def csv_path(self) -> Optional[Path]:
        if self.log_dir is None:
            return None
        return self.log_dir / f"{self.name}_session{self.session}.csv"

    def set_recording(self, recording: bool) -> None:
        self.recording = recording

    def log(self, row: Dict[str, float]) -> None:
        """Record one row if recording is on.

        Args:
            row: Field name to value
        """
        if not self.recording:
            return

        self._rows.append(dict(row))

        if self.csv_path is None:
            return

        # Initialize CSV with fieldnames from first row of the session
        if not self._csv_initialized:
            self._fieldnames = list(row.keys())
            with open(self.csv_path, "w", newline="") as f:
                writer = csv.DictWriter(f, fieldnames=self._fieldnames)
                writer.writeheader()
            self._csv_initialized = True

        # Append to CSV
        with open(self.csv_path, "a", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=self._fieldnames, extrasaction="ignore")
            writer.writerow(row)

    def clear(self) -> None:
        """Drop rows recorded so far in this session."""
        self._rows = []
        if self.csv_path is not None and self.csv_path.exists():
            self.csv_path.unlink()
        self._csv_initialized = False

    def new_session(self) -> None:
        """Start a new session; following rows go to a new file."""
        self.session += 1
        self._rows = []
        self._csv_initialized = False

    @property
    def rows(self) -> List[Dict[str, Any]]:
        return list(self._rows)

    def get_series(self, field: str) -> List[float]:
        """Get time series of a field in the current session."""
        return [r[field] for r in self._rows if field in r]


class RunLogger:
    """Output directory layout for one simulation run."""

    def __init__(
        self,
        run_name: str,
        base_dir: Path = Path("runs"),
        level: str = "INFO",
    ):
        """Initialize run logger.

        Args:
            run_name: Name of the run
            base_dir: Base directory for runs
            level: Console logging level
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self.run_dir = Path(base_dir) / f"{timestamp}_{run_name}"
        self.run_dir.mkdir(parents=True, exist_ok=True)

        self.logs_dir = self.run_dir / "logs"
        self.logs_dir.mkdir(exist_ok=True)

        self.telemetry_dir = self.run_dir / "telemetry"
        self.telemetry_dir.mkdir(exist_ok=True)

        self.logger = setup_logging(
            level=level,
            log_file=self.logs_dir / "sim.log",
        )

    def save_config(self, config: Dict[str, Any]) -> None:
        """Save run configuration.

        Args:
            config: Configuration dict
        """
        import yaml

        config_path = self.run_dir / "config.yaml"
        with open(config_path, "w") as f:
            yaml.dump(config, f, default_flow_style=False)

    def save_summary(self, summary: Dict[str, Any]) -> None:
        """Save end-of-run metrics as YAML."""
        import yaml

        with open(self.run_dir / "summary.yaml", "w") as f:
            yaml.dump(summary, f, default_flow_style=False)
