"""
errors.py - exception types raised by the ledger

Every error is a ValueError so callers that only care about "bad input" can
catch that; callers that want to re-prompt for a specific field can catch the
narrower types.
"""


class SplitBookError(ValueError):
    """Base class for all ledger errors."""


class SplitImbalanceError(SplitBookError):
    """Custom shares of an expense don't add up to its total."""

    def __init__(self, amount: float, custom_total: float):
        self.amount = amount
        self.custom_total = custom_total
        super().__init__(
            f"The sum of split amounts ({custom_total:.2f}) does not match "
            f"the total expense amount ({amount:.2f})."
        )


class ExpenseValidationError(SplitBookError):
    """An expense is missing a description, payer or a positive amount."""


class EmptyParticipantSet(ExpenseValidationError):
    """An expense was submitted without any participant."""


class UserValidationError(SplitBookError):
    """A user name is empty or otherwise unusable."""


class DuplicateUserError(UserValidationError):
    pass


class UserInUseError(UserValidationError):
    """The user is still referenced by an expense and can't be removed."""


class SettlementError(SplitBookError):
    pass
