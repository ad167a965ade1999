# fog_mobility/errors.py


class InvariantViolation(RuntimeError):
    """Topology, routing or device state can no longer be trusted. Abort the run."""


class ExternalServiceFailure(RuntimeError):
    """A collaborator outside the simulation (routing oracle) failed."""


class ConfigurationError(ValueError):
    pass
