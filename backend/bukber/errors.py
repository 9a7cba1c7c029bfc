"""Error taxonomy for room operations.

Socket handlers translate these into client-facing behaviour: some are
reported privately through the ``error`` event, others are dropped silently
because they are expected under normal races (a round advancing between a
click and its delivery, a duplicate admin click, ...).
"""


class RoomError(Exception):
    """Base class for every error raised by room operations."""

    #: whether the handler should report the error to the caller
    surfaced = True

    def __init__(self, message: str = ''):
        super().__init__(message)
        self.message = message


class ValidationError(RoomError):
    """A required field is missing or malformed."""


class NotFoundError(RoomError):
    """The room id does not match any active session."""


class RoomCapacityError(RoomError):
    """No free room code could be found."""


class AuthorizationError(RoomError):
    """A non-host (or non-member) attempted a restricted action."""

    surfaced = False


class StaleRoundError(RoomError):
    """A vote targeted a round that is no longer current."""

    surfaced = False


class UpstreamUnavailable(RoomError):
    """The venue lookup service failed or returned nothing usable."""

    surfaced = False
