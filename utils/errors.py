"""
utils/errors.py
---------------
Error taxonomy shared by the scheduling engine and its collaborators.

    ValidationError          bad user input, nothing was changed
    NotFoundError            operation on an unknown obligation id
    NotificationUnavailable  reminder could not be scheduled (non-fatal)
    GatewayError             raised by a notification gateway implementation

Database errors are not wrapped; they propagate as the driver raised them.
"""


class BillNudgeError(Exception):
    """Base class for all application errors."""


class ValidationError(BillNudgeError):
    """Raised when user input fails a precondition."""


class NotFoundError(BillNudgeError):
    """Raised when an obligation id does not exist."""

    def __init__(self, obligation_id: str):
        super().__init__(f"Obligation {obligation_id!r} not found")
        self.obligation_id = obligation_id


class GatewayError(BillNudgeError):
    """Raised by a gateway when schedule/cancel fails."""


class NotificationUnavailable(BillNudgeError):
    """
    Signal that a reminder could not be scheduled.

    The obligation itself was persisted; only the side channel failed.
    """

    def __init__(self, obligation_id: str, cause: BaseException | None = None):
        reason = f": {cause}" if cause else ""
        super().__init__(f"Reminder unavailable for {obligation_id!r}{reason}")
        self.obligation_id = obligation_id
        self.cause = cause
