# Tests for wheel odometry and closed-loop driving

import pytest
import numpy as np

from vehsim.core.errors import ConfigurationError
from vehsim.core.types import Twist2D
from vehsim.vehicles import (
    AckermannVehicle,
    DifferentialDrive,
    DifferentialDrive4Wheels,
    OdometryEstimator,
    WheelState,
    ackermann_angles,
)


def roll_wheels(vehicle, twist):
    """Spin every wheel as if the chassis moved with ``twist`` without slip."""
    for w, (cvx, cvy) in zip(vehicle.wheels, vehicle.wheel_velocities_local(twist)):
        w.omega = (np.cos(w.yaw) * cvx + np.sin(w.yaw) * cvy) / w.radius


class TestOdometryEstimator:

    def test_degenerate_layout(self):
        """Coincident wheels cannot observe the yaw rate."""
        with pytest.raises(ConfigurationError):
            OdometryEstimator().check_layout([WheelState(), WheelState()])

    def test_single_wheel(self):
        """One wheel is never enough."""
        with pytest.raises(ConfigurationError):
            OdometryEstimator().check_layout([WheelState()])

    def test_stationary(self):
        """Wheels at rest give a zero twist."""
        wheels = [WheelState(y=0.5), WheelState(y=-0.5)]
        assert OdometryEstimator().estimate(wheels).is_close(Twist2D())


class TestDifferentialOdometry:

    def test_arc(self):
        """Forward speed and yaw rate recovered from two wheels."""
        vehicle = DifferentialDrive()
        twist = Twist2D(vx=0.7, vy=0.0, omega=0.4)
        roll_wheels(vehicle, twist)
        assert vehicle.compute_odometry().is_close(twist)

    def test_spin_in_place(self):
        """Opposite wheel speeds mean pure rotation."""
        vehicle = DifferentialDrive()
        vehicle.wheels[0].omega = -2.0
        vehicle.wheels[1].omega = 2.0
        odo = vehicle.compute_odometry()
        assert odo.vx == pytest.approx(0.0)
        assert odo.omega == pytest.approx(0.8)

    def test_closed_form_matches_least_squares(self):
        """The closed form agrees with the general estimator."""
        vehicle = DifferentialDrive()
        roll_wheels(vehicle, Twist2D(vx=-0.3, omega=1.1))
        closed = vehicle.compute_odometry()
        general = vehicle.odometry_estimator.estimate(vehicle.wheels)
        assert closed.is_close(general)

    def test_offset_axle(self):
        """An axle ahead of the reference point adds lateral velocity when turning."""
        vehicle = DifferentialDrive.load_from_config({
            "controller": {"class": "raw"},
            "l_wheel": {"pos": [0.3, 0.5]},
            "r_wheel": {"pos": [0.3, -0.5]},
        })
        twist = Twist2D(vx=0.5, vy=-0.3 * 0.2, omega=0.2)
        roll_wheels(vehicle, twist)
        assert vehicle.compute_odometry().is_close(twist)

    def test_initial_state_odometry(self):
        """Initial velocity is reflected in the odometry before any tick."""
        vehicle = DifferentialDrive.load_from_config({
            "controller": {"class": "raw"},
            "init_vel": [0.5, 0.0, 0.0],
        })
        assert vehicle.odometry_estimate.vx == pytest.approx(0.5)


class TestSkidSteerOdometry:

    def test_straight(self):
        """All four wheels agree on straight motion."""
        vehicle = DifferentialDrive4Wheels()
        twist = Twist2D(vx=1.5)
        roll_wheels(vehicle, twist)
        assert vehicle.compute_odometry().is_close(twist)

    def test_uses_only_wheels(self, diff_drive_4):
        """Ground truth velocity is not consulted."""
        roll_wheels(diff_drive_4, Twist2D(vx=0.4))
        assert diff_drive_4.velocity_local.is_close(Twist2D())
        assert diff_drive_4.compute_odometry().vx == pytest.approx(0.4)


class TestAckermannOdometry:

    def test_straight(self):
        """No steering: plain forward speed."""
        car = AckermannVehicle()
        twist = Twist2D(vx=2.0)
        roll_wheels(car, twist)
        assert car.compute_odometry().is_close(twist)

    def test_steered(self):
        """Yaw rate follows v * tan(steer) / wheelbase."""
        car = AckermannVehicle()
        steer = np.deg2rad(15.0)
        car.apply_steering(steer)

        v = 2.0
        wheelbase = car.wheels[2].x - car.rear_axle_x
        twist = Twist2D(vx=v, omega=v * np.tan(steer) / wheelbase)
        roll_wheels(car, twist)
        assert car.compute_odometry().is_close(twist, atol=1e-9)


class TestAckermannGeometry:

    def test_zero_steer(self):
        """Straight ahead: both front wheels at zero."""
        angles = ackermann_angles(0.0, [1.6, 1.6], [0.7, -0.7], 0.0)
        assert np.allclose(angles, 0.0)

    def test_inner_wheel_steers_more(self):
        """Turning left, the left wheel is the inner one."""
        left, right = ackermann_angles(np.deg2rad(20.0), [1.6, 1.6], [0.7, -0.7], 0.0)
        assert left > np.deg2rad(20.0) > right > 0.0

    def test_symmetric(self):
        """Mirrored steering gives mirrored angles."""
        pos = ackermann_angles(0.3, [1.6, 1.6], [0.7, -0.7], 0.0)
        neg = ackermann_angles(-0.3, [1.6, 1.6], [0.7, -0.7], 0.0)
        assert np.allclose(pos, -neg[::-1])

    def test_common_turn_centre(self):
        """Every front wheel axis passes through the same point on the rear axle line."""
        steer = 0.25
        xs, ys = np.array([1.6, 1.6]), np.array([0.7, -0.7])
        angles = ackermann_angles(steer, xs, ys, 0.0)
        centre_y = ys + xs / np.tan(angles)
        assert centre_y == pytest.approx([1.6 / np.tan(steer)] * 2)

    def test_steering_clipped(self):
        """Steering is limited to the maximum angle."""
        car = AckermannVehicle(max_steer_angle=np.deg2rad(20.0))
        car.apply_steering(1.0)
        assert car.steer_angle == pytest.approx(np.deg2rad(20.0))
        assert car.wheels[0].yaw == 0.0

    def test_steering_reaches_backend(self, car, backend):
        """Front wheel fixtures are turned in the backend too."""
        car.apply_steering(0.2)
        assert car.wheels[2].yaw != 0.0
        _, _, wheel_yaw = backend.get_transform(car.wheel_fixtures[2])
        assert wheel_yaw == pytest.approx(car.wheels[2].yaw)


class TestDriving:

    def test_twist_pid_reaches_speed(self, backend, context, tick):
        """The velocity controller brings the robot to 1 m/s in a straight line."""
        vehicle = DifferentialDrive.load_from_config({
            "controller": {"class": "twist_pid", "KP": 10.0, "V": 1.0},
        })
        vehicle.create_multibody_system(backend)
        tick(vehicle, backend, context, 600)

        assert vehicle.velocity_local.vx == pytest.approx(1.0, abs=0.1)
        assert vehicle.pose.y == pytest.approx(0.0, abs=1e-6)
        assert vehicle.odometry_estimate.vx == pytest.approx(vehicle.velocity_local.vx, abs=0.05)

    def test_skid_steer_drives_forward(self, diff_drive_4, backend, context, tick):
        """Equal torque on all four wheels moves the robot forward."""
        diff_drive_4.controller.set_torques([2.0, 2.0, 2.0, 2.0])
        tick(diff_drive_4, backend, context, 200)
        assert diff_drive_4.pose.x > 0.0
        assert diff_drive_4.pose.yaw == pytest.approx(0.0, abs=1e-9)

    def test_car_turns_left(self, backend, context, tick):
        """Positive steering turns the car to the left."""
        car = AckermannVehicle.load_from_config({
            "init_vel": [2.0, 0.0, 0.0],
            "controller": {
                "class": "front_steer_pid",
                "KP": 200.0,
                "max_torque": 300.0,
                "V": 2.0,
                "STEER_ANG_DEG": 10.0,
            },
        })
        car.create_multibody_system(backend)
        tick(car, backend, context, 800)

        assert car.steer_angle == pytest.approx(np.deg2rad(10.0))
        assert car.pose.yaw > 0.1
        assert car.pose.y > 0.0
