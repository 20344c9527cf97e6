"""
Payment Allocation Module

Applies an incoming payment to a loan in priority order: outstanding
penalties first, then the current schedule installment (split between
interest and principal in the installment's own proportion), and any
overflow to principal. Returns the breakdown and a new loan snapshot;
nothing is persisted here.
"""

from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from .config import LoanEngineConfig, get_config
from .dates import DateLike, ensure_utc
from .errors import ArithmeticInconsistency, InvalidAmount, InvalidLoanState
from .logging_config import get_logger, log_action
from .models import Loan, LoanStatus, Payment, PaymentAllocation, PaymentType, ScheduleEntry
from .money import ZERO, Numeric, round_money, to_decimal, within_tolerance


class PaymentAllocator:
    """
    Distributes payments across penalty, interest and principal
    """

    def __init__(self, config: Optional[LoanEngineConfig] = None):
        self.config = config or get_config()
        self.logger = get_logger("loanstar.allocation")

    def schedule_basis(self, total_paid: Decimal, total_penalties_paid: Decimal) -> Decimal:
        """
        Amount counted as paid toward the schedule

        Every payment received counts by default; with
        exclude_penalty_payments_from_schedule set, penalty payments do not.
        """
        if self.config.exclude_penalty_payments_from_schedule:
            return max(ZERO, total_paid - total_penalties_paid)
        return total_paid

    def find_current_entry(
        self,
        schedule: Sequence[ScheduleEntry],
        paid_toward_schedule: Decimal
    ) -> Optional[Tuple[ScheduleEntry, Decimal]]:
        """
        Locate the installment the next payment lands on

        Walks the schedule accumulating total due; the first entry whose
        cumulative due exceeds what has been paid toward the
        schedule is current.

        Returns:
            (entry, amount still due on it) or None if the schedule is covered
        """
        cumulative_due = ZERO
        for entry in schedule:
            cumulative_due += entry.total_due
            if cumulative_due > paid_toward_schedule:
                return entry, cumulative_due - paid_toward_schedule
        return None

    def settle_schedule(
        self,
        schedule: Sequence[ScheduleEntry],
        paid_toward_schedule: Decimal,
        paid_on: DateLike
    ) -> Tuple[ScheduleEntry, ...]:
        """Mark installments paid from cumulative payments, oldest first"""
        paid_on = ensure_utc(paid_on)
        settled = []
        cumulative_before = ZERO

        for entry in schedule:
            paid_amount = min(entry.total_due, max(ZERO, paid_toward_schedule - cumulative_before))
            is_paid = paid_amount >= entry.total_due
            paid_date: Optional[datetime] = None
            if is_paid:
                paid_date = entry.paid_date if entry.is_paid and entry.paid_date else paid_on

            if (paid_amount, is_paid, paid_date) == (entry.paid_amount, entry.is_paid, entry.paid_date):
                settled.append(entry)
            else:
                settled.append(replace(entry, paid_amount=paid_amount, is_paid=is_paid, paid_date=paid_date))
            cumulative_before += entry.total_due

        return tuple(settled)

    def allocate(
        self,
        loan: Loan,
        payment_amount: Numeric,
        as_of: DateLike,
        received_by: Optional[str] = None,
        notes: Optional[str] = None
    ) -> PaymentAllocation:
        """
        Apply a payment to a loan

        Args:
            loan: Loan snapshot (penalties should already be assessed)
            payment_amount: Amount collected
            as_of: Payment date
            received_by: Agent who collected the payment
            notes: Free text stored on the payment record

        Returns:
            PaymentAllocation with the breakdown, the Payment record and the
            updated loan snapshot

        Raises:
            InvalidAmount: If payment amount is not positive
            InvalidLoanState: If the loan is not ACTIVE (when enforced)
            ArithmeticInconsistency: If the breakdown does not add up
        """
        amount = round_money(payment_amount)
        if to_decimal(payment_amount) <= ZERO or amount <= ZERO:
            raise InvalidAmount(f"Payment amount must be positive, got {payment_amount}")

        if self.config.enforce_active_loan_for_payments and loan.status != LoanStatus.ACTIVE:
            raise InvalidLoanState(
                f"Loan {loan.loan_id} is {loan.status.value}, payments require an active loan"
            )

        as_of = ensure_utc(as_of)
        remaining = amount

        # Penalties first
        applied_to_penalty = min(remaining, loan.total_penalties_outstanding)
        remaining -= applied_to_penalty

        applied_to_interest = ZERO
        applied_to_principal = ZERO
        entry_number = None
        covers_installment = True

        if remaining > ZERO:
            paid_toward_schedule = self.schedule_basis(loan.total_paid, loan.total_penalties_paid)
            current = self.find_current_entry(loan.schedule, paid_toward_schedule)
            if current:
                entry, due_on_entry = current
                portion = min(remaining, due_on_entry)
                if entry.total_due > ZERO:
                    applied_to_interest = round_money(portion * entry.interest_due / entry.total_due)
                applied_to_principal = portion - applied_to_interest
                remaining -= portion
                entry_number = entry.payment_number
                covers_installment = portion >= due_on_entry

            # Overflow beyond what is currently due goes to principal
            applied_to_principal += remaining
            remaining = ZERO

        self._check_consistency(amount, applied_to_penalty, applied_to_interest, applied_to_principal)

        outstanding_balance = max(ZERO, loan.outstanding_balance - applied_to_principal)
        total_paid = loan.total_paid + amount
        total_penalties_paid = loan.total_penalties_paid + applied_to_penalty
        status = LoanStatus.CLOSED if outstanding_balance <= ZERO else loan.status

        updated_loan = replace(
            loan,
            schedule=self.settle_schedule(
                loan.schedule, self.schedule_basis(total_paid, total_penalties_paid), as_of
            ),
            outstanding_balance=outstanding_balance,
            total_paid=total_paid,
            total_penalties_outstanding=max(ZERO, loan.total_penalties_outstanding - applied_to_penalty),
            total_penalties_paid=total_penalties_paid,
            status=status,
            version=loan.version + 1
        )

        if applied_to_penalty == amount:
            payment_type = PaymentType.PENALTY
        elif not covers_installment:
            payment_type = PaymentType.PARTIAL
        else:
            payment_type = PaymentType.REGULAR

        payment = Payment(
            amount=amount,
            payment_date=as_of,
            applied_to_principal=applied_to_principal,
            applied_to_interest=applied_to_interest,
            applied_to_penalty=applied_to_penalty,
            loan_id=loan.loan_id,
            payment_type=payment_type,
            received_by=received_by,
            notes=notes
        )

        log_action(
            self.logger, "info", "Payment allocated",
            action="allocate_payment", resource=f"loan:{loan.loan_id}",
            extra={
                "payment_id": payment.payment_id,
                "amount": str(amount),
                "applied_to_penalty": str(applied_to_penalty),
                "applied_to_interest": str(applied_to_interest),
                "applied_to_principal": str(applied_to_principal),
                "schedule_entry": entry_number,
                "outstanding_balance": str(outstanding_balance),
                "status": status.value
            }
        )

        return PaymentAllocation(
            applied_to_penalty=applied_to_penalty,
            applied_to_interest=applied_to_interest,
            applied_to_principal=applied_to_principal,
            updated_loan=updated_loan,
            payment=payment,
            schedule_entry_number=entry_number
        )

    def _check_consistency(self, amount: Decimal, penalty: Decimal, interest: Decimal, principal: Decimal) -> None:
        """Abort if the breakdown does not sum to the payment amount"""
        components = (penalty, interest, principal)
        if any(component < ZERO for component in components):
            raise ArithmeticInconsistency(f"Negative allocation component in {components}")

        applied = penalty + interest + principal
        if not within_tolerance(applied, amount, self.config.rounding_tolerance):
            raise ArithmeticInconsistency(
                f"Allocated {applied} does not match payment amount {amount}"
            )
