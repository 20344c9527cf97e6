"""
Loan Lifecycle Module

Origination, approval, rejection and closure of loans. Status changes go
through a single transition table keyed by every LoanStatus.
"""

from dataclasses import replace
from typing import Dict, FrozenSet, Optional

from .config import LoanEngineConfig, get_config
from .dates import DateLike, ensure_utc
from .errors import InvalidLoanState, LoanValidationError
from .logging_config import get_logger, log_action
from .models import Loan, LoanStatus, LoanTerms
from .money import ZERO
from .schedule import ScheduleGenerator
from .validation import LoanValidator


ALLOWED_TRANSITIONS: Dict[LoanStatus, FrozenSet[LoanStatus]] = {
    LoanStatus.PENDING_APPROVAL: frozenset({LoanStatus.APPROVED, LoanStatus.ACTIVE, LoanStatus.REJECTED}),
    LoanStatus.APPROVED: frozenset({LoanStatus.ACTIVE, LoanStatus.REJECTED}),
    LoanStatus.ACTIVE: frozenset({LoanStatus.CLOSED}),
    LoanStatus.CLOSED: frozenset(),
    LoanStatus.REJECTED: frozenset(),
}


def can_transition(current: LoanStatus, target: LoanStatus) -> bool:
    """Check whether a status change is allowed"""
    return target in ALLOWED_TRANSITIONS[current]


class LoanLifecycle:
    """
    Manages loan status from origination through closure
    """

    def __init__(
        self,
        config: Optional[LoanEngineConfig] = None,
        validator: Optional[LoanValidator] = None,
        schedule_generator: Optional[ScheduleGenerator] = None
    ):
        self.config = config or get_config()
        self.validator = validator or LoanValidator(self.config)
        self.schedule_generator = schedule_generator or ScheduleGenerator(self.config)
        self.logger = get_logger("loanstar.lifecycle")

    def originate_loan(
        self,
        terms: LoanTerms,
        account_id: Optional[str] = None,
        created_by: Optional[str] = None,
        loan_id: Optional[str] = None
    ) -> Loan:
        """
        Originate a new loan awaiting approval

        Args:
            terms: Loan terms
            account_id: Borrower account
            created_by: Agent creating the loan
            loan_id: Identifier to use (generated if omitted)

        Returns:
            PENDING_APPROVAL loan with its full schedule

        Raises:
            LoanValidationError: If the terms violate business rules
        """
        violations = self.validator.validate_terms(terms)
        if violations:
            raise LoanValidationError(violations)

        schedule = self.schedule_generator.generate_for_terms(terms)

        loan_kwargs = {}
        if loan_id:
            loan_kwargs['loan_id'] = loan_id

        loan = Loan(
            terms=terms,
            schedule=schedule,
            status=LoanStatus.PENDING_APPROVAL,
            account_id=account_id,
            created_by=created_by,
            **loan_kwargs
        )

        log_action(
            self.logger, "info", "Loan originated",
            action="originate_loan", resource=f"loan:{loan.loan_id}",
            extra={
                "account_id": account_id,
                "created_by": created_by,
                "principal": str(terms.principal),
                "monthly_interest_rate": str(terms.monthly_interest_rate),
                "tenure_months": terms.tenure_months,
                "payment_frequency": terms.payment_frequency.value,
                "installments": len(schedule)
            }
        )

        return loan

    def approve_loan(
        self,
        loan: Loan,
        approved_by: Optional[str] = None,
        approval_date: Optional[DateLike] = None,
        activate: bool = True
    ) -> Loan:
        """Approve a pending loan; it becomes ACTIVE unless activate is False"""
        target = LoanStatus.ACTIVE if activate else LoanStatus.APPROVED
        return self._transition(
            loan, target,
            approved_by=approved_by,
            approval_date=ensure_utc(approval_date) if approval_date is not None else None
        )

    def activate_loan(self, loan: Loan) -> Loan:
        """Start servicing an approved loan"""
        return self._transition(loan, LoanStatus.ACTIVE)

    def reject_loan(self, loan: Loan, reason: str, rejected_by: Optional[str] = None) -> Loan:
        """Reject a loan with a reason"""
        if not reason or not reason.strip():
            raise ValueError("Rejection reason is required")
        return self._transition(
            loan, LoanStatus.REJECTED,
            rejection_reason=reason.strip(),
            approved_by=rejected_by
        )

    def close_if_settled(self, loan: Loan) -> Loan:
        """Close an active loan whose outstanding balance reached zero"""
        if loan.status == LoanStatus.ACTIVE and loan.outstanding_balance <= ZERO:
            return self._transition(loan, LoanStatus.CLOSED)
        return loan

    def _transition(self, loan: Loan, target: LoanStatus, **changes) -> Loan:
        if not can_transition(loan.status, target):
            raise InvalidLoanState(
                f"Cannot move loan {loan.loan_id} from {loan.status.value} to {target.value}"
            )

        # Keep existing values for changes that were not supplied
        changes = {key: value for key, value in changes.items() if value is not None}
        updated = replace(loan, status=target, version=loan.version + 1, **changes)

        log_action(
            self.logger, "info", f"Loan {target.value}",
            action="transition_loan", resource=f"loan:{loan.loan_id}",
            extra={"from": loan.status.value, "to": target.value}
        )

        return updated
