"""
Commission Module

Agent commission is earned only on the interest portion of collected
payments. Totals over several payments can be aggregated two ways; both are
exposed so the chosen convention is explicit.
"""

from decimal import Decimal
from typing import Iterable, Optional, Union

from .config import CommissionAggregation, LoanEngineConfig, get_config
from .errors import InvalidAmount
from .models import Payment, PaymentAllocation
from .money import ZERO, Numeric, round_money, sum_money, to_decimal

HUNDRED = Decimal('100')

InterestSource = Union[Payment, PaymentAllocation, Numeric]


def _interest_of(item: InterestSource) -> Decimal:
    if isinstance(item, (Payment, PaymentAllocation)):
        return item.applied_to_interest
    return to_decimal(item)


class CommissionCalculator:
    """
    Calculates agent commission from interest collected
    """

    def __init__(self, config: Optional[LoanEngineConfig] = None):
        self.config = config or get_config()

    def commission(self, interest_amount: Numeric, commission_percentage: Numeric) -> Decimal:
        """
        Commission on an interest amount

        Args:
            interest_amount: Interest collected
            commission_percentage: Agent's commission in percent (0-100)

        Returns:
            Commission rounded to cents
        """
        interest = to_decimal(interest_amount)
        percentage = to_decimal(commission_percentage)

        if interest < ZERO:
            raise InvalidAmount(f"Interest amount cannot be negative, got {interest}")
        if percentage < Decimal('0') or percentage > HUNDRED:
            raise InvalidAmount(f"Commission percentage must be between 0 and 100, got {percentage}")

        return round_money(interest * percentage / HUNDRED)

    def commission_from_allocation(self, allocation: PaymentAllocation, commission_percentage: Numeric) -> Decimal:
        return self.commission(allocation.applied_to_interest, commission_percentage)

    def total_commission(self, payments: Iterable[InterestSource], commission_percentage: Numeric) -> Decimal:
        """Sum the interest portions, then apply the percentage once"""
        total_interest = sum_money(_interest_of(item) for item in payments)
        return self.commission(total_interest, commission_percentage)

    def total_commission_per_payment(self, payments: Iterable[InterestSource], commission_percentage: Numeric) -> Decimal:
        """Apply the percentage to each payment, then sum the rounded commissions"""
        return sum_money(self.commission(_interest_of(item), commission_percentage) for item in payments)

    def aggregate(self, payments: Iterable[InterestSource], commission_percentage: Numeric) -> Decimal:
        """Total commission using the configured aggregation"""
        method = CommissionAggregation(self.config.commission_aggregation)
        if method == CommissionAggregation.SUM_THEN_PERCENTAGE:
            return self.total_commission(payments, commission_percentage)
        elif method == CommissionAggregation.PERCENTAGE_THEN_SUM:
            return self.total_commission_per_payment(payments, commission_percentage)
        else:
            raise ValueError(f"Unsupported commission aggregation: {method}")

    def projected_commission(self, total_interest: Numeric, commission_percentage: Numeric) -> Decimal:
        """Commission an agent would earn if all scheduled interest is collected"""
        return self.commission(total_interest, commission_percentage)
