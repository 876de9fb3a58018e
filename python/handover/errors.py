"""Exception types raised by the handover core."""


class HandoverError(Exception):
    """Base class for handover errors."""


class LockTimeout(HandoverError):
    """The knowledge store lock could not be acquired in time."""


class CollaboratorError(HandoverError):
    """The language model call failed or its output was unusable."""


class NotInitializedError(HandoverError):
    """An operation needs a handover profile but none exists."""
