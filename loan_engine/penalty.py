"""
Penalty Module

Daily-accrued surcharge on overdue installments. The monthly penalty rate
(3% by default) is spread over a fixed 30 day month and charged on the
installment's total due for every whole day past its due date.
"""

from dataclasses import replace
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Tuple

from .config import LoanEngineConfig, get_config
from .dates import DateLike, days_between
from .logging_config import get_logger, log_action
from .models import Loan, PenaltyDetails, ScheduleEntry
from .money import ZERO, Numeric, round_money, sum_money, to_decimal


class PenaltyCalculator:
    """
    Computes overdue penalties for schedule entries and loans
    """

    def __init__(self, config: Optional[LoanEngineConfig] = None):
        self.config = config or get_config()
        self.logger = get_logger("loanstar.penalty")

    @property
    def daily_rate(self) -> Decimal:
        return self.config.penalty_rate_monthly / Decimal(self.config.penalty_days_in_month)

    def days_overdue(self, due_date: DateLike, as_of: DateLike) -> int:
        """Number of whole days past due (0 if not overdue)"""
        return max(0, days_between(due_date, as_of))

    def penalty(self, due_amount: Numeric, due_date: DateLike, as_of: DateLike) -> Decimal:
        """
        Calculate penalty for an overdue amount

        Args:
            due_amount: Amount that was due
            due_date: When it was due
            as_of: Date the penalty is assessed at

        Returns:
            Penalty rounded to cents, never negative
        """
        days = self.days_overdue(due_date, as_of)
        if days == 0:
            return ZERO

        amount = to_decimal(due_amount)
        if amount <= ZERO:
            return ZERO

        return round_money(amount * self.config.penalty_rate_monthly
                           / Decimal(self.config.penalty_days_in_month) * Decimal(days))

    def penalty_details(self, due_amount: Numeric, due_date: DateLike, as_of: DateLike) -> PenaltyDetails:
        """Penalty with its daily breakdown"""
        days = self.days_overdue(due_date, as_of)
        if days == 0:
            return PenaltyDetails(
                days_overdue=0,
                penalty_per_day=ZERO,
                total_penalty=ZERO,
                is_past_due=False
            )

        return PenaltyDetails(
            days_overdue=days,
            penalty_per_day=round_money(max(ZERO, to_decimal(due_amount)) * self.daily_rate),
            total_penalty=self.penalty(due_amount, due_date, as_of),
            is_past_due=True
        )

    def total_penalties(self, items: Iterable[Tuple[Numeric, DateLike]], as_of: DateLike) -> Decimal:
        """Sum of penalties over (due amount, due date) pairs"""
        return sum_money(self.penalty(amount, due_date, as_of) for amount, due_date in items)

    def total_due_with_penalty(self, entry: ScheduleEntry, as_of: DateLike) -> Decimal:
        """Unpaid part of an installment plus its penalty"""
        penalty = self.penalty(entry.total_due, entry.due_date, as_of)
        return round_money(entry.total_due - entry.paid_amount + penalty)

    def refresh_schedule(self, schedule: Sequence[ScheduleEntry], as_of: DateLike) -> Tuple[ScheduleEntry, ...]:
        """
        Recompute penalties on unpaid entries.

        Paid entries keep the penalty they carried when they were settled.
        """
        refreshed = []
        for entry in schedule:
            if entry.is_paid:
                refreshed.append(entry)
                continue
            penalty = self.penalty(entry.total_due, entry.due_date, as_of)
            refreshed.append(entry if penalty == entry.penalty else replace(entry, penalty=penalty))
        return tuple(refreshed)

    def assess_loan(self, loan: Loan, as_of: DateLike) -> Loan:
        """
        Re-assess accrued penalties on a loan

        Args:
            loan: Loan snapshot
            as_of: Assessment date

        Returns:
            New loan snapshot with refreshed entry penalties; outstanding
            penalties become accrued minus paid, never lower than before
        """
        schedule = self.refresh_schedule(loan.schedule, as_of)
        accrued = sum_money(entry.penalty for entry in schedule)
        # Assessment never forgives penalties; only payments reduce them
        outstanding = max(loan.total_penalties_outstanding, accrued - loan.total_penalties_paid, ZERO)

        if schedule == loan.schedule and outstanding == loan.total_penalties_outstanding:
            return loan

        log_action(
            self.logger, "info", "Loan penalties assessed",
            action="assess_penalties", resource=f"loan:{loan.loan_id}",
            extra={
                "accrued": str(accrued),
                "paid": str(loan.total_penalties_paid),
                "outstanding": str(outstanding)
            }
        )

        return replace(
            loan,
            schedule=schedule,
            total_penalties_outstanding=outstanding,
            version=loan.version + 1
        )
