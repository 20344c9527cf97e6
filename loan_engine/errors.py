"""Error taxonomy for the loan engine."""

from typing import Iterable, List


class LoanEngineError(ValueError):
    """Base exception for all loan engine errors"""


class LoanValidationError(LoanEngineError):
    """Loan parameters are outside the configured business-rule bounds"""

    def __init__(self, violations: Iterable[str]):
        self.violations: List[str] = list(violations)
        super().__init__("; ".join(self.violations) or "Loan parameters are invalid")


class InvalidAmount(LoanEngineError):
    """Zero, negative or otherwise unusable monetary amount"""


class InvalidLoanState(LoanEngineError):
    """Operation is not allowed in the loan's (or request's) current status"""


class InsufficientEarnings(LoanEngineError):
    """Cashout would take collectible earnings below zero"""


class ArithmeticInconsistency(LoanEngineError):
    """
    Allocation components do not add up to the payment amount.

    Signals a programming error; the operation is aborted so that corrupted
    financial state is never handed back for persistence.
    """
