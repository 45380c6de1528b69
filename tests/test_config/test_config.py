# Tests for configuration loading and validation

from pathlib import Path

import pytest

from vehsim.config import (
    DEFAULT_CONFIG,
    apply_overrides,
    check_config,
    load_config,
    validate_config,
    with_defaults,
)
from vehsim.core.errors import ConfigurationError
from vehsim.vehicles import load_from_config


CONFIG_DIR = Path(__file__).parents[2] / "configs"


class TestLoadConfig:

    def test_load(self, config_file):
        config = load_config(config_file)
        assert config["world"]["dt"] == 0.005
        assert len(config["vehicles"]) == 2

    def test_missing_file(self, temp_dir):
        with pytest.raises(ConfigurationError):
            load_config(temp_dir / "missing.yaml")

    def test_invalid_yaml(self, temp_dir):
        path = temp_dir / "bad.yaml"
        path.write_text("world: [1, 2\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_not_a_mapping(self, temp_dir):
        path = temp_dir / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_defaults_filled(self, temp_dir):
        """Missing sections and keys come from the defaults."""
        path = temp_dir / "partial.yaml"
        path.write_text("world:\n  dt: 0.002\nvehicles:\n  - {name: r1, class: differential}\n")
        config = load_config(path)
        assert config["world"] == {"dt": 0.002, "gravity": 9.81}
        assert config["run"] == DEFAULT_CONFIG["run"]

    def test_defaults_not_shared(self):
        config = with_defaults({})
        config["run"]["num_ticks"] = 5
        assert DEFAULT_CONFIG["run"]["num_ticks"] == 1000

    @pytest.mark.parametrize("name", ["differential.yaml", "ackermann.yaml"])
    def test_shipped_configs(self, name):
        """Example worlds validate and every vehicle builds."""
        config = load_config(CONFIG_DIR / name)
        assert validate_config(config) == []
        templates = config.get("vehicle_classes") or {}
        for i, node in enumerate(config["vehicles"]):
            load_from_config(node, vehicle_index=i, templates=templates)


class TestOverrides:

    def test_nested(self, config):
        config = apply_overrides(config, ["world.dt=0.001", "run.record=true", "run.name=fast"])
        assert config["world"]["dt"] == 0.001
        assert config["run"]["record"] is True
        assert config["run"]["name"] == "fast"

    def test_list_index(self, config):
        config = apply_overrides(config, ["vehicles.0.init_pose=[1.0, 2.0, 45.0]"])
        assert config["vehicles"][0]["init_pose"] == [1.0, 2.0, 45.0]

    def test_new_key(self, config):
        config = apply_overrides(config, ["vehicles.1.controller.V=2"])
        assert config["vehicles"][1]["controller"]["V"] == 2

    def test_bad_format(self, config):
        with pytest.raises(ConfigurationError):
            apply_overrides(config, ["world.dt"])


class TestValidateConfig:

    def test_valid(self, config):
        assert validate_config(config) == []

    @pytest.mark.parametrize("path, value, fragment", [
        (("world", "dt"), 0.0, "world.dt"),
        (("run", "num_ticks"), -5, "run.num_ticks"),
        (("logging", "level"), "LOUD", "logging.level"),
    ])
    def test_bad_values(self, config, path, value, fragment):
        config[path[0]][path[1]] = value
        errors = validate_config(config)
        assert any(fragment in e for e in errors)

    def test_no_vehicles(self, config):
        config["vehicles"] = []
        assert validate_config(config) == ["vehicles must be a non-empty list"]

    def test_vehicle_errors(self, config):
        config["vehicles"].append({"name": "r1", "init_pose": [0.0, 1.0], "chassis": {"mass": -1.0}})
        errors = validate_config(config)
        assert "vehicles[2].class is required" in errors
        assert any("used twice" in e for e in errors)
        assert any("init_pose" in e for e in errors)
        assert any("chassis.mass" in e for e in errors)

    def test_template_without_dynamics(self, config):
        config["vehicle_classes"]["bad"] = {"chassis": {"mass": 1.0}}
        assert "vehicle_classes.bad.dynamics is required" in validate_config(config)

    def test_check_config_raises(self, config):
        config["world"]["dt"] = -1.0
        with pytest.raises(ConfigurationError, match="world.dt"):
            check_config(config)
