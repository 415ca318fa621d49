"""Errors raised while scaling the SignalR resource. Each one ends the run."""


class ScalerError(Exception):
    exit_code = 1


class ConfigurationError(ScalerError):
    """Bad time zone, malformed schedule or missing parameter."""

    exit_code = 2


class AuthenticationError(ScalerError):
    """No usable managed identity, or it can't see any subscription."""

    exit_code = 3


class ResourceNotFoundError(ScalerError):
    pass


class TransientServiceError(ScalerError):
    pass


class UpdateFailedError(ScalerError):
    pass
