"""Domain errors shared by the store, the file adapters and the service layer."""


class MissionControlError(Exception):
    """Base class for errors raised by Mission Control."""


class NotFoundError(MissionControlError, LookupError):
    """Requested task, agent, row or file does not exist."""


class BadRequestError(MissionControlError, ValueError):
    """Input is missing, empty or outside the accepted values."""


class ConflictError(MissionControlError):
    """Write would collide with an existing record."""
