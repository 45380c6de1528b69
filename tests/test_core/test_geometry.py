# Tests for chassis geometry

import pytest
import numpy as np

from vehsim.core.errors import ConfigurationError
from vehsim.core.geometry import ChassisGeometry, max_radius_from_polygon, rectangle_polygon


DIAMOND = [[1.0, 0.0], [0.0, 1.0], [-1.0, 0.0], [0.0, -1.0]]


class TestChassisGeometry:

    def test_diamond_radius(self):
        """Unit diamond should have bounding radius 1."""
        chassis = ChassisGeometry(DIAMOND, mass=10.0)
        assert chassis.max_radius == pytest.approx(1.0)

    def test_radius_is_max_vertex_distance(self):
        """Radius should be the farthest vertex from the origin."""
        poly = [[-0.4, -0.5], [0.6, -0.3], [2.0, 0.0], [0.6, 0.3], [-0.4, 0.5]]
        chassis = ChassisGeometry(poly, mass=10.0)
        assert chassis.max_radius == pytest.approx(2.0)

    def test_radius_recomputed_on_polygon_change(self):
        """Assigning a new polygon should update the radius."""
        chassis = ChassisGeometry(DIAMOND, mass=10.0)
        chassis.polygon = rectangle_polygon(6.0, 8.0)
        assert chassis.max_radius == pytest.approx(5.0)

    def test_radius_not_settable(self):
        """max_radius is derived and read-only."""
        chassis = ChassisGeometry(DIAMOND, mass=10.0)
        with pytest.raises(AttributeError):
            chassis.max_radius = 3.0

    def test_polygon_read_only(self):
        """The stored polygon cannot be edited in place."""
        chassis = ChassisGeometry(DIAMOND, mass=10.0)
        with pytest.raises(ValueError):
            chassis.polygon[0, 0] = 5.0

    def test_too_few_vertices(self):
        """A polygon needs at least 3 vertices."""
        with pytest.raises(ConfigurationError):
            ChassisGeometry([[0.0, 0.0], [1.0, 0.0]], mass=10.0)

    def test_non_positive_mass(self):
        """Chassis mass must be positive."""
        with pytest.raises(ConfigurationError):
            ChassisGeometry(DIAMOND, mass=0.0)

    def test_world_polygon(self):
        """Placing at a pose should rotate then translate the vertices."""
        chassis = ChassisGeometry(DIAMOND, mass=1.0)
        world = chassis.world_polygon(1.0, 2.0, np.pi / 2)
        assert np.allclose(world[0], [1.0, 3.0])

    def test_from_config_requires_mass(self):
        """Config without chassis mass should be rejected."""
        with pytest.raises(ConfigurationError):
            ChassisGeometry.from_config({}, np.array(DIAMOND))

    def test_from_config_defaults(self):
        """Missing polygon should fall back to the given default."""
        chassis = ChassisGeometry.from_config({"mass": 3.0, "zmax": 1.0}, np.array(DIAMOND))
        assert chassis.num_vertices == 4
        assert chassis.z_max == 1.0

    def test_configuration_error_is_value_error(self):
        """ConfigurationError should be catchable as ValueError."""
        with pytest.raises(ValueError):
            ChassisGeometry(DIAMOND, mass=-1.0)


def test_max_radius_from_polygon():
    """Helper should agree with the class property."""
    assert max_radius_from_polygon(np.array([[3.0, 4.0], [0.0, 1.0], [1.0, 0.0]])) == pytest.approx(5.0)
