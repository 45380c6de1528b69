#!/usr/bin/env python3
"""Simulation entry point for vehsim."""

import argparse
import logging
import random
import sys
from pathlib import Path

import numpy as np
import torch

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from vehsim.analysis.logger import RunLogger
from vehsim.config import apply_overrides, load_config, validate_config
from vehsim.core.errors import VehicleSimError
from vehsim.simulation import World


def set_global_seed(seed: int) -> int:
    """Seed every random generator a controller or sensor may use.

    Args:
        seed: Random seed

    Returns:
        The seed used
    """
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    return seed


def main():
    parser = argparse.ArgumentParser(description="Run a vehicle simulation")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("configs/differential.yaml"),
        help="Path to world configuration file",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Number of ticks to simulate (overrides config)",
    )
    parser.add_argument(
        "--override",
        action="append",
        default=[],
        help="Config overrides in format key.subkey=value",
    )
    parser.add_argument(
        "--run-name",
        type=str,
        default=None,
        help="Run name (overrides config)",
    )
    parser.add_argument(
        "--record",
        action="store_true",
        help="Record per-tick telemetry CSV files",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed",
    )

    args = parser.parse_args()

    # Load config
    config = load_config(args.config)

    # Apply overrides
    if args.override:
        config = apply_overrides(config, args.override)

    if args.ticks:
        config["run"]["num_ticks"] = args.ticks

    if args.run_name:
        config["run"]["name"] = args.run_name

    if args.record:
        config["run"]["record"] = True

    errors = validate_config(config)
    if errors:
        print("Configuration validation failed:")
        for error in errors:
            print(f"  - {error}")
        sys.exit(1)

    set_global_seed(args.seed)

    # Setup logging
    run_name = config["run"]["name"]
    run_logger = RunLogger(run_name, level=config["logging"]["level"])

    # Telemetry CSVs go to the run directory unless a vehicle sets its own
    for node in config["vehicles"]:
        node.setdefault("log_path", str(run_logger.telemetry_dir))
    run_logger.save_config(config)

    logger = logging.getLogger("vehsim")
    logger.info(f"Starting run: {run_name}")
    logger.info(f"Config: {args.config}")
    logger.info(f"Seed: {args.seed}")

    world = World.from_config(config)

    try:
        summary = world.run(
            config["run"]["num_ticks"],
            log_every=config["run"].get("log_every", 0),
        )
        logger.info(f"Run complete at t={world.time:.3f}s")
        run_logger.save_summary(summary)
    except VehicleSimError as e:
        logger.error(f"Run aborted: {e}")
        run_logger.save_summary(world.summary())
        sys.exit(2)
    except KeyboardInterrupt:
        logger.info("Run interrupted by user")
        run_logger.save_summary(world.summary())
    finally:
        world.close()

    logger.info("Done")


if __name__ == "__main__":
    main()
