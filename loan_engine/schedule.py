"""
Amortization Schedule Module

Generates level-payment (French method) amortization schedules for weekly,
bi-monthly and monthly repayment. Interest rates are simple monthly
percentages; each frequency derives its own period rate and payment count.
"""

from decimal import Decimal, ROUND_CEILING
from datetime import datetime
from typing import List, Optional, Tuple

from .config import LoanEngineConfig, get_config
from .dates import DateLike, add_days, add_months, ensure_utc
from .errors import InvalidAmount
from .logging_config import get_logger, log_action
from .models import LoanTerms, PaymentFrequency, ScheduleEntry
from .money import ZERO, Numeric, round_money, to_decimal

HUNDRED = Decimal('100')


class ScheduleGenerator:
    """
    Builds amortization schedules from loan parameters
    """

    def __init__(self, config: Optional[LoanEngineConfig] = None):
        self.config = config or get_config()
        self.logger = get_logger("loanstar.schedule")

    def payment_count(self, tenure_months: int, frequency: PaymentFrequency) -> int:
        """Number of installments for the tenure"""
        if frequency == PaymentFrequency.MONTHLY:
            return tenure_months
        elif frequency == PaymentFrequency.BI_MONTHLY:
            return tenure_months * 2
        elif frequency == PaymentFrequency.WEEKLY:
            weeks = Decimal(tenure_months) * self.config.weeks_per_month
            return int(weeks.to_integral_value(rounding=ROUND_CEILING))
        else:
            raise ValueError(f"Unsupported payment frequency: {frequency}")

    def period_rate(self, monthly_rate: Numeric, frequency: PaymentFrequency) -> Decimal:
        """Interest rate per payment period as a fraction (4% monthly -> 0.04)"""
        monthly = to_decimal(monthly_rate) / HUNDRED
        if frequency == PaymentFrequency.MONTHLY:
            return monthly
        elif frequency == PaymentFrequency.BI_MONTHLY:
            return monthly / Decimal('2')
        elif frequency == PaymentFrequency.WEEKLY:
            return monthly / self.config.weeks_per_month
        else:
            raise ValueError(f"Unsupported payment frequency: {frequency}")

    def level_payment(self, principal: Numeric, period_rate: Decimal, periods: int) -> Decimal:
        """
        Level installment: P * r * (1+r)^n / ((1+r)^n - 1)

        Args:
            principal: Loan principal
            period_rate: Rate per period as a fraction
            periods: Number of installments

        Returns:
            Installment amount rounded to cents
        """
        principal = to_decimal(principal)
        if periods < 1:
            raise ValueError(f"Number of payments must be at least 1, got {periods}")

        if period_rate == Decimal('0'):
            return round_money(principal / Decimal(periods))

        factor = (Decimal('1') + period_rate) ** periods
        return round_money(principal * period_rate * factor / (factor - Decimal('1')))

    def due_date(self, start_date: DateLike, frequency: PaymentFrequency, payment_number: int) -> datetime:
        """Due date of the given installment, counted from the start date"""
        if frequency == PaymentFrequency.MONTHLY:
            return add_months(start_date, payment_number)
        elif frequency == PaymentFrequency.BI_MONTHLY:
            return add_days(start_date, self.config.bi_monthly_period_days * payment_number)
        elif frequency == PaymentFrequency.WEEKLY:
            return add_days(start_date, self.config.weekly_period_days * payment_number)
        else:
            raise ValueError(f"Unsupported payment frequency: {frequency}")

    def generate(
        self,
        principal: Numeric,
        monthly_rate: Numeric,
        tenure_months: int,
        frequency: PaymentFrequency,
        start_date: DateLike
    ) -> Tuple[ScheduleEntry, ...]:
        """
        Generate complete amortization schedule

        Args:
            principal: Loan principal amount
            monthly_rate: Interest rate per month in percent
            tenure_months: Loan tenure in months
            frequency: Payment frequency
            start_date: Loan start date; first installment falls one period later

        Returns:
            Schedule entries ordered by due date
        """
        principal = round_money(principal)
        if principal <= ZERO:
            raise InvalidAmount(f"Principal must be positive, got {principal}")
        if to_decimal(monthly_rate) < Decimal('0'):
            raise InvalidAmount(f"Interest rate cannot be negative, got {monthly_rate}")
        if tenure_months < 1:
            raise ValueError(f"Tenure must be at least 1 month, got {tenure_months}")

        frequency = PaymentFrequency(frequency)
        start_date = ensure_utc(start_date)
        periods = self.payment_count(tenure_months, frequency)
        rate = self.period_rate(monthly_rate, frequency)
        installment = self.level_payment(principal, rate, periods)

        schedule: List[ScheduleEntry] = []
        remaining_balance = principal

        for payment_number in range(1, periods + 1):
            interest_due = round_money(remaining_balance * rate)

            if payment_number == periods:
                # Final installment absorbs the rounding residual
                principal_due = remaining_balance
            else:
                principal_due = min(installment - interest_due, remaining_balance)

            remaining_balance = max(ZERO, remaining_balance - principal_due)

            schedule.append(ScheduleEntry(
                payment_number=payment_number,
                due_date=self.due_date(start_date, frequency, payment_number),
                principal_due=principal_due,
                interest_due=interest_due,
                total_due=principal_due + interest_due,
                remaining_balance_after=remaining_balance
            ))

        log_action(
            self.logger, "debug", "Amortization schedule generated",
            action="generate_schedule",
            extra={
                "principal": str(principal),
                "monthly_rate": str(monthly_rate),
                "tenure_months": tenure_months,
                "frequency": frequency.value,
                "payments": periods,
                "installment": str(installment)
            }
        )

        return tuple(schedule)

    def generate_for_terms(self, terms: LoanTerms) -> Tuple[ScheduleEntry, ...]:
        """Generate the schedule for loan terms"""
        return self.generate(
            terms.principal,
            terms.monthly_interest_rate,
            terms.tenure_months,
            terms.payment_frequency,
            terms.start_date
        )

    def total_interest(
        self,
        principal: Numeric,
        monthly_rate: Numeric,
        tenure_months: int,
        frequency: PaymentFrequency,
        start_date: DateLike
    ) -> Decimal:
        """Total interest over the life of the loan"""
        schedule = self.generate(principal, monthly_rate, tenure_months, frequency, start_date)
        return round_money(sum((entry.interest_due for entry in schedule), ZERO))

    def total_amount(
        self,
        principal: Numeric,
        monthly_rate: Numeric,
        tenure_months: int,
        frequency: PaymentFrequency,
        start_date: DateLike
    ) -> Decimal:
        """Total amount to be paid (principal + interest)"""
        interest = self.total_interest(principal, monthly_rate, tenure_months, frequency, start_date)
        return round_money(principal) + interest
