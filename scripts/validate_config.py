#!/usr/bin/env python3
"""Validate a world configuration file."""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from vehsim.config import load_config, validate_config
from vehsim.core.errors import ConfigurationError
from vehsim.vehicles import load_from_config


def main():
    parser = argparse.ArgumentParser(description="Validate world configuration file")
    parser.add_argument(
        "config",
        type=Path,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--build",
        action="store_true",
        help="Also build every vehicle to catch geometry errors",
    )

    args = parser.parse_args()

    if not args.config.exists():
        print(f"Error: Config file not found: {args.config}")
        sys.exit(1)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    errors = validate_config(config)

    if not errors and args.build:
        templates = config.get("vehicle_classes") or {}
        for i, node in enumerate(config["vehicles"]):
            try:
                load_from_config(node, vehicle_index=i, templates=templates)
            except ConfigurationError as e:
                errors.append(f"vehicles[{i}]: {e}")

    if errors:
        print("Configuration validation failed:")
        for error in errors:
            print(f"  - {error}")
        sys.exit(1)
    else:
        print("Configuration is valid")
        sys.exit(0)


if __name__ == "__main__":
    main()
