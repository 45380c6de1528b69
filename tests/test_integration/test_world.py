# Integration tests for the simulation world

import copy
import logging
import time

import pytest
import numpy as np

from vehsim.comms import Client, TopicBroker
from vehsim.core.errors import ConfigurationError, ContractViolation
from vehsim.simulation import World, load_world_from_config
from vehsim.vehicles import AckermannVehicle, DifferentialDrive


class TestWorldFromConfig:

    def test_builds_vehicles(self, config):
        world = World.from_config(config)
        assert list(world.vehicles) == ["r1", "car"]
        assert isinstance(world.get_vehicle("r1"), DifferentialDrive)
        assert isinstance(world.get_vehicle("car"), AckermannVehicle)
        assert world.get_vehicle("car").vehicle_index == 1
        assert world.backend.num_bodies == 2
        assert world.dt == 0.005

    def test_template_applied(self, config):
        """r1 gets the small_robot controller with its own speed."""
        world = World.from_config(config)
        ctrl = world.get_vehicle("r1").controller
        assert ctrl.name == "twist_pid"
        assert ctrl.setpoint_v == 1.0
        assert ctrl.pid.max_out == 20.0

    def test_load_world_shorthand(self, config):
        assert list(load_world_from_config(config).vehicles) == ["r1", "car"]

    def test_invalid_config(self, config):
        config["vehicles"][1]["name"] = "r1"
        with pytest.raises(ConfigurationError):
            World.from_config(config)

    def test_failure_closes_client(self, config):
        """A vehicle that fails to build disconnects the world client."""
        broker = TopicBroker()
        config["comms"]["enabled"] = True
        config["vehicles"][0]["controller"] = {"class": "mpc"}
        with pytest.raises(ConfigurationError):
            World.from_config(config, broker=broker)
        assert broker.list_nodes() == []

    def test_record(self, config):
        config["run"]["record"] = True
        world = World.from_config(config)
        world.run(3)
        assert len(world.get_vehicle("r1").get_logger("logger_pose").rows) == 3


class TestWorldLoop:

    def test_invalid_dt(self):
        with pytest.raises(ConfigurationError):
            World(dt=0.0)

    def test_run(self, config):
        """Time advances by dt per tick and every vehicle is summarised."""
        world = World.from_config(config)
        calls = []
        summary = world.run(200, callback=lambda w, ctx: calls.append(ctx.tick))

        assert calls == list(range(200))
        assert world.time == pytest.approx(200 * 0.005)
        assert set(summary) == {"r1", "car"}
        assert summary["r1"]["metrics"]["distance"] > 0.1
        assert summary["r1"]["warnings"] == []

    def test_vehicles_independent(self, config):
        """The robot drives off while the parked car stays put."""
        world = World.from_config(config)
        world.run(200)
        assert world.get_vehicle("r1").pose.x > 0.1
        car = world.get_vehicle("car")
        assert car.pose.as_2d() == pytest.approx((0.0, 5.0, 0.0), abs=1e-9)

    def test_all_vehicles_idle_after_step(self, config):
        world = World.from_config(config)
        ctx = world.step()
        assert ctx.tick == 0
        assert world.context.tick == 1
        assert all(v.torque_buffer is None for v in world.vehicles.values())

    def test_duplicate_vehicle(self):
        world = World()
        world.add_vehicle(DifferentialDrive(name="r1"))
        with pytest.raises(ConfigurationError):
            world.add_vehicle(DifferentialDrive(name="r1"))
        assert world.backend.num_bodies == 1

    def test_unknown_vehicle(self):
        with pytest.raises(KeyError):
            World().get_vehicle("ghost")

    def test_error_reraised_with_tick(self, caplog):
        """Vehicle errors stop the step and are logged with the tick."""
        world = World(dt=0.01)
        vehicle = world.add_vehicle(DifferentialDrive.load_from_config({
            "name": "r1",
            "controller": {"class": "raw"},
        }))
        world.run(2)
        vehicle.controller.set_torques([1.0])
        with caplog.at_level(logging.ERROR):
            with pytest.raises(ContractViolation):
                world.step()
        assert "tick 2" in caplog.text
        assert world.context.tick == 2


class TestCommands:

    def test_send_command(self, config):
        """Commands are applied at the start of the next tick."""
        world = World.from_config(config)
        world.send_command("r1", {"v": 0.3, "omega": 0.1})
        ctrl = world.get_vehicle("r1").controller
        assert ctrl.setpoint_v == 1.0
        world.step()
        assert ctrl.setpoint_v == 0.3
        assert ctrl.setpoint_omega == 0.1

    def test_rejected_command(self, caplog):
        world = World()
        world.add_vehicle(DifferentialDrive.load_from_config({"name": "r1", "controller": {"class": "raw"}}))
        world.send_command("r1", {"speed": 1.0})
        world.send_command("ghost", {"v": 1.0})
        with caplog.at_level(logging.WARNING):
            world.step()
        assert "rejected command" in caplog.text
        assert "ghost" in caplog.text


class TestWorldComms:

    @pytest.fixture
    def comms_config(self, config):
        config = copy.deepcopy(config)
        config["comms"]["enabled"] = True
        return config

    def test_pose_published(self, comms_config):
        """Each tick publishes the pose of every vehicle."""
        broker = TopicBroker()
        world = World.from_config(comms_config, broker=broker)
        poses = []
        with Client("viewer", broker) as viewer:
            viewer.subscribe_topic("r1/pose", poses.append)
            world.run(5)
            deadline = time.monotonic() + 5.0
            while len(poses) < 5 and time.monotonic() < deadline:
                time.sleep(0.01)
        world.close()

        assert len(poses) == 5
        assert set(poses[-1]) == {"x", "y", "yaw", "vx", "vy", "omega"}
        assert poses[-1]["x"] == pytest.approx(world.get_vehicle("r1").pose.x)

    def test_command_topic(self, comms_config):
        """Commands published on <name>/cmd reach the controller."""
        broker = TopicBroker()
        world = World.from_config(comms_config, broker=broker)
        ctrl = world.get_vehicle("r1").controller
        with Client("joystick", broker) as joystick:
            joystick.advertise_topic("r1/cmd")
            joystick.publish_topic("r1/cmd", {"v": 0.25, "omega": 0.0})

            deadline = time.monotonic() + 5.0
            while ctrl.setpoint_v != 0.25 and time.monotonic() < deadline:
                world.step()
                time.sleep(0.001)
        world.close()

        assert ctrl.setpoint_v == 0.25
        assert "world" not in [n.name for n in broker.list_nodes()]

    def test_world_node_listed(self, comms_config):
        broker = TopicBroker()
        world = World.from_config(comms_config, broker=broker)
        assert [n.name for n in world.client.request_list_of_nodes()] == ["world"]
        assert "r1/pose" in broker.list_topics()
        world.close()
