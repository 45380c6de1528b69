# Analysis module - Logging, telemetry recording, run metrics
# IMPURE - Has side effects (file I/O, logging)

from .logger import setup_logging, TelemetryLogger, RunLogger
from .metrics import compute_trajectory_metrics, compute_odometry_error, check_run_health
from .checkpointing import save_policy_checkpoint, load_policy_checkpoint
