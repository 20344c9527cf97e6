"""
Loan Validation Module

Business-rule bounds on loan parameters, checked before a schedule is
generated. Violations are returned as data so the caller decides whether
they are fatal.
"""

from decimal import Decimal
from typing import List, Optional

from .config import LoanEngineConfig, get_config
from .errors import LoanValidationError
from .models import LoanTerms
from .money import Numeric, to_decimal


class LoanValidator:
    """
    Checks principal, monthly interest rate and tenure against configured bounds
    """

    def __init__(self, config: Optional[LoanEngineConfig] = None):
        self.config = config or get_config()

    def validate(self, principal: Numeric, monthly_rate: Numeric, tenure_months: int) -> List[str]:
        """
        Validate loan parameters

        Args:
            principal: Loan principal amount
            monthly_rate: Interest rate per month in percent
            tenure_months: Loan tenure in months

        Returns:
            Every violated rule (empty if valid)
        """
        errors = []
        cfg = self.config

        if to_decimal(principal) <= Decimal('0'):
            errors.append("Principal amount must be greater than 0")

        rate = to_decimal(monthly_rate)
        if rate < cfg.min_interest_rate or rate > cfg.max_interest_rate:
            errors.append(
                f"Interest rate must be between {cfg.min_interest_rate}% and "
                f"{cfg.max_interest_rate}% per month"
            )

        if tenure_months < cfg.min_tenure_months or tenure_months > cfg.max_tenure_months:
            errors.append(
                f"Tenure must be between {cfg.min_tenure_months} and "
                f"{cfg.max_tenure_months} months"
            )

        return errors

    def validate_terms(self, terms: LoanTerms) -> List[str]:
        """Validate the parameters carried by loan terms"""
        return self.validate(terms.principal, terms.monthly_interest_rate, terms.tenure_months)

    def is_valid(self, principal: Numeric, monthly_rate: Numeric, tenure_months: int) -> bool:
        return not self.validate(principal, monthly_rate, tenure_months)

    def ensure_valid(self, principal: Numeric, monthly_rate: Numeric, tenure_months: int) -> None:
        """Raise LoanValidationError carrying every violation, if any"""
        violations = self.validate(principal, monthly_rate, tenure_months)
        if violations:
            raise LoanValidationError(violations)
