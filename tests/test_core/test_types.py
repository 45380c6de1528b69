# Tests for core types

import pytest
import numpy as np
from dataclasses import FrozenInstanceError

from vehsim.core.types import Pose, Twist2D, TickContext, VehicleState


class TestPose:

    def test_frozen(self):
        """Pose fields cannot be assigned."""
        pose = Pose(x=1.0)
        with pytest.raises(FrozenInstanceError):
            pose.x = 2.0

    def test_as_2d(self):
        """as_2d should return (x, y, yaw)."""
        assert Pose(x=1.0, y=2.0, yaw=0.5).as_2d() == (1.0, 2.0, 0.5)

    def test_is_finite(self):
        """NaN in any component should make the pose non-finite."""
        assert Pose().is_finite()
        assert not Pose(y=float("nan")).is_finite()


class TestTwist2D:

    def test_rotation_roundtrip(self):
        """Local -> global -> local should be the identity."""
        local = Twist2D(vx=1.0, vy=0.2, omega=0.3)
        back = local.rotated(0.7).rotated(-0.7)
        assert back.is_close(local)

    def test_rotate_quarter_turn(self):
        """Forward motion facing +y should be +y in the global frame."""
        g = Twist2D(vx=1.0).rotated(np.pi / 2)
        assert g.vx == pytest.approx(0.0, abs=1e-12)
        assert g.vy == pytest.approx(1.0)

    def test_omega_unchanged_by_rotation(self):
        """Yaw rate is frame independent in the plane."""
        assert Twist2D(omega=0.4).rotated(1.2).omega == 0.4

    def test_from_array_invalid_shape(self):
        """from_array should reject wrong shape."""
        with pytest.raises(AssertionError):
            Twist2D.from_array(np.zeros(2))


class TestTickContext:

    def test_next(self):
        """next() should advance time and tick count."""
        ctx = TickContext(time=1.0, dt=0.01, tick=3).next()
        assert ctx.time == pytest.approx(1.01)
        assert ctx.tick == 4
        assert ctx.dt == 0.01


class TestVehicleState:

    def test_dimension(self):
        """State dimension should be 9 + 3 per wheel."""
        assert VehicleState.zeros(2).dimension == 15
        assert VehicleState.zeros(4).dimension == 21

    def test_to_array_shape(self):
        """to_array should return correct shape."""
        arr = VehicleState.zeros(4).to_array()
        assert arr.shape == (21,)
        assert arr.dtype == np.float32

    def test_heading_encoding(self):
        """cos/sin of yaw should follow the local velocity and odometry."""
        state = VehicleState(
            pose=Pose(yaw=np.pi / 2),
            velocity=Twist2D(),
            velocity_local=Twist2D(vx=2.0),
            odometry=Twist2D(vx=1.5),
            wheel_omega=np.zeros(2),
            wheel_torque=np.zeros(2),
            wheel_yaw=np.zeros(2),
            wheel_phi=np.zeros(2),
        )
        arr = state.to_array()
        assert arr[1] == pytest.approx(2.0)
        assert arr[4] == pytest.approx(1.5)
        assert arr[7] == pytest.approx(0.0, abs=1e-6)
        assert arr[8] == pytest.approx(1.0)
