# Error kinds raised by the vehicle dynamics core
# FORBIDDEN: torch, logging, any I/O


class VehicleSimError(Exception):
    """Base class for all vehicle simulation errors."""


class ConfigurationError(VehicleSimError, ValueError):
    """Malformed or missing vehicle description.

    Raised at construction time; the vehicle cannot be instantiated.
    """


class BackendStateError(VehicleSimError, RuntimeError):
    """Physics backend produced a non-finite pose or velocity.

    Fatal for the tick in which it was detected.
    """


class ContractViolation(VehicleSimError, RuntimeError):
    """Programmer error: a capability or lifecycle contract was broken."""


class SensorUnavailable(VehicleSimError):
    """A sensor could not produce a measurement this tick (recoverable)."""
