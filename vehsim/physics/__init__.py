# Physics module - rigid-body backends consumed by vehicles

from .backend import PhysicsBackend, BodyHandle, FixtureHandle, WheelHandle
from .planar import PlanarRigidBodyBackend
