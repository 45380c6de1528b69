# Policy checkpoint save/load utilities

import torch
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


def save_policy_checkpoint(
    path: Path,
    policy: torch.nn.Module,
    config: Optional[Dict[str, Any]] = None,
    metrics: Optional[Dict[str, float]] = None,
) -> None:
    """Save torque policy weights.

    Args:
        path: Checkpoint file path
        policy: Policy network
        config: Optional controller configuration
        metrics: Optional evaluation metrics
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    checkpoint = {
        "policy_state_dict": policy.state_dict(),
        "state_dim": getattr(policy, "state_dim", None),
        "num_wheels": getattr(policy, "num_wheels", None),
        "config": config or {},
    }

    if metrics is not None:
        checkpoint["metrics"] = metrics

    # Save to temporary file first, then rename (atomic)
    temp_path = path.with_suffix(".tmp")
    torch.save(checkpoint, temp_path)
    temp_path.rename(path)

    logger.info(f"Saved policy checkpoint to {path}")


def load_policy_checkpoint(
    path: Path,
    device: torch.device = torch.device("cpu"),
) -> Dict[str, Any]:
    """Load torque policy checkpoint.

    Args:
        path: Checkpoint file path
        device: Device to load tensors to

    Returns:
        Checkpoint dict
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Checkpoint not found: {path}")

    checkpoint = torch.load(path, map_location=device)

    if "policy_state_dict" not in checkpoint:
        raise ValueError(f"Not a policy checkpoint: {path}")

    logger.info(f"Loaded policy checkpoint from {path}")

    return checkpoint
