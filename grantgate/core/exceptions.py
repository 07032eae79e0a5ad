"""
GrantGate Exception Hierarchy

All exceptions inherit from GrantGateError for easy catching.

Grant errors carry a stable numeric ``code`` so hosts can map them onto
their own error channels:

    1  GrantNotFound
    2  Unauthorized
    3  InvalidAmount
    4  MilestoneNotFound
    5  AlreadyApproved
    6  ExceedsTotalAmount
    7  InvalidStatus
    8  DuplicateMilestone
    9  GrantAlreadyExists
"""


class GrantGateError(Exception):
    """Base exception for all GrantGate errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class GrantError(GrantGateError):
    """Raised when a grant operation is rejected"""
    code = 0


class GrantNotFound(GrantError):
    """Raised when no grant exists for the requested id"""
    code = 1


class Unauthorized(GrantError):
    """Raised when the authorizer denies the required identity"""
    code = 2


class InvalidAmount(GrantError):
    """Raised when an amount is zero, out of range, or exceeds the available balance"""
    code = 3


class MilestoneNotFound(GrantError):
    """Raised when no milestone exists for the requested (grant, milestone) pair"""
    code = 4


class AlreadyApproved(GrantError):
    """Raised when approving a milestone a second time"""
    code = 5


class ExceedsTotalAmount(GrantError):
    """Raised when an approval would push released funds past the grant total"""
    code = 6


class InvalidStatus(GrantError):
    """Raised when a lifecycle transition is not allowed from the current status"""
    code = 7


class DuplicateMilestone(GrantError):
    """Raised when a milestone id is reused within a grant"""
    code = 8


class GrantAlreadyExists(GrantError):
    """Raised when a grant id is reused"""
    code = 9


class StoreError(GrantGateError):
    """Raised when store operations fail"""
    pass


class TransferError(GrantGateError):
    """Raised when the token gateway cannot complete a transfer"""
    pass
