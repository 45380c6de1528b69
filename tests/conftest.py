# Pytest configuration and fixtures

import pytest
import numpy as np
import torch
from pathlib import Path
import tempfile
import yaml

from vehsim.core.types import TickContext, VehicleState
from vehsim.physics import PlanarRigidBodyBackend
from vehsim.vehicles import AckermannVehicle, DifferentialDrive, DifferentialDrive4Wheels


@pytest.fixture
def seed():
    """Fixed seed for reproducibility."""
    return 42


@pytest.fixture
def set_seed(seed):
    """Set all random seeds."""
    np.random.seed(seed)
    torch.manual_seed(seed)


@pytest.fixture
def dt():
    """Standard timestep."""
    return 0.005


@pytest.fixture
def context(dt):
    """First tick context."""
    return TickContext(time=0.0, dt=dt, tick=0)


@pytest.fixture
def backend():
    """Fresh planar physics backend."""
    return PlanarRigidBodyBackend()


@pytest.fixture
def diff_drive(backend):
    """Differential robot at the origin, raw torque control, already in the backend."""
    vehicle = DifferentialDrive.load_from_config({
        "name": "r1",
        "controller": {"class": "raw"},
    })
    vehicle.create_multibody_system(backend)
    return vehicle


@pytest.fixture
def diff_drive_4(backend):
    """Four-wheel skid-steer robot, raw torque control, already in the backend."""
    vehicle = DifferentialDrive4Wheels.load_from_config({
        "name": "r4",
        "controller": {"class": "raw"},
    })
    vehicle.create_multibody_system(backend)
    return vehicle


@pytest.fixture
def car(backend):
    """Ackermann car with default geometry, already in the backend."""
    vehicle = AckermannVehicle.load_from_config({"name": "car"})
    vehicle.create_multibody_system(backend)
    return vehicle


def run_ticks(vehicle, backend, context, num_ticks):
    """Drive one vehicle through num_ticks full ticks; returns the next context."""
    for _ in range(num_ticks):
        vehicle.simul_pre_timestep(context)
        backend.step(context.dt)
        vehicle.on_backend_stepped()
        vehicle.simul_post_timestep(context)
        context = context.next()
    return context


@pytest.fixture
def tick():
    """Helper running full ticks on a single vehicle."""
    return run_ticks


@pytest.fixture
def sample_state():
    """Two-wheel vehicle state at rest."""
    return VehicleState.zeros(2)


@pytest.fixture
def config():
    """Standard test world configuration."""
    return {
        "world": {
            "dt": 0.005,
            "gravity": 9.81,
        },
        "comms": {
            "enabled": False,
            "node_name": "world",
        },
        "run": {
            "name": "test",
            "num_ticks": 50,
            "record": False,
            "log_every": 0,
        },
        "logging": {
            "level": "WARNING",
        },
        "vehicle_classes": {
            "small_robot": {
                "dynamics": "differential",
                "chassis": {"mass": 15.0},
                "controller": {"class": "twist_pid", "KP": 10.0, "max_torque": 20.0},
            },
        },
        "vehicles": [
            {
                "name": "r1",
                "class": "small_robot",
                "init_pose": [0.0, 0.0, 0.0],
                "controller": {"V": 1.0},
            },
            {
                "name": "car",
                "class": "ackermann",
                "init_pose": [0.0, 5.0, 0.0],
            },
        ],
    }


@pytest.fixture
def temp_dir():
    """Create temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config_file(config, temp_dir):
    """Create temporary config file."""
    config_path = temp_dir / "config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(config, f)
    return config_path
