"""Typed outcomes raised by the service layer.

Blueprints turn these into flash messages or HTTP statuses; nothing here
should reach the user as an unhandled fault.
"""


class CashSyncError(Exception):
    message = "Something went wrong"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class NotFound(CashSyncError):
    message = "Not found"


class AlreadyExists(CashSyncError):
    message = "Already exists"


class AlreadyJoined(AlreadyExists):
    message = "Already joined this dashboard."


class Unauthenticated(CashSyncError):
    message = "You must be logged in"


class Unauthorized(CashSyncError):
    message = "You are not allowed to do that"


class TransientIO(CashSyncError):
    """Storage was unreachable; the caller may retry."""

    message = "Service temporarily unavailable, please try again"
