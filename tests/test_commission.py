"""
Test suite for agent commission
"""

import pytest
from datetime import date
from decimal import Decimal

from loan_engine.commission import CommissionCalculator
from loan_engine.config import CommissionAggregation, LoanEngineConfig
from loan_engine.errors import InvalidAmount
from loan_engine.models import Payment
from loan_engine.money import ZERO


@pytest.fixture
def calculator():
    return CommissionCalculator(LoanEngineConfig())


def make_payment(interest):
    interest = Decimal(interest)
    return Payment(
        amount=Decimal('100') + interest,
        payment_date=date(2024, 2, 15),
        applied_to_principal=Decimal('100'),
        applied_to_interest=interest,
        applied_to_penalty=ZERO
    )


class TestCommission:
    """Test commission on a single interest amount"""

    def test_five_percent_of_interest(self, calculator):
        assert calculator.commission(Decimal('300'), Decimal('5')) == Decimal('15.00')

    def test_zero_interest(self, calculator):
        assert calculator.commission(ZERO, Decimal('5')) == ZERO

    def test_rounding(self, calculator):
        assert calculator.commission(Decimal('0.10'), Decimal('5')) == Decimal('0.01')
        assert calculator.commission(Decimal('123.45'), Decimal('7.5')) == Decimal('9.26')

    def test_negative_interest(self, calculator):
        with pytest.raises(InvalidAmount, match="cannot be negative"):
            calculator.commission(Decimal('-1'), Decimal('5'))

    def test_percentage_bounds(self, calculator):
        assert calculator.commission(Decimal('300'), Decimal('100')) == Decimal('300.00')
        with pytest.raises(InvalidAmount):
            calculator.commission(Decimal('300'), Decimal('101'))
        with pytest.raises(InvalidAmount):
            calculator.commission(Decimal('300'), Decimal('-1'))

    def test_monotonic(self, calculator):
        """Test that commission never decreases as interest or percentage grows"""
        amounts = [Decimal(cents) / 100 for cents in range(0, 2000, 37)]
        results = [calculator.commission(amount, Decimal('5')) for amount in amounts]
        assert results == sorted(results)

        percentages = [Decimal(p) / 4 for p in range(0, 401, 7)]
        results = [calculator.commission(Decimal('123.45'), p) for p in percentages]
        assert results == sorted(results)

    def test_projected_commission(self, calculator):
        assert calculator.projected_commission(Decimal('810.46'), Decimal('10')) == Decimal('81.05')


class TestAggregation:
    """Test the two ways of totalling commission over payments"""

    def test_sum_then_percentage(self, calculator):
        """Test that interest is summed before the percentage is applied"""
        amounts = [Decimal('0.10'), Decimal('0.10'), Decimal('0.10')]
        assert calculator.total_commission(amounts, Decimal('5')) == Decimal('0.02')

    def test_percentage_then_sum(self, calculator):
        """Test that each payment's commission is rounded before summing"""
        amounts = [Decimal('0.10'), Decimal('0.10'), Decimal('0.10')]
        assert calculator.total_commission_per_payment(amounts, Decimal('5')) == Decimal('0.03')

    def test_methods_agree_without_rounding_residue(self, calculator):
        amounts = [Decimal('300'), Decimal('200')]
        assert calculator.total_commission(amounts, Decimal('5')) == Decimal('25.00')
        assert calculator.total_commission_per_payment(amounts, Decimal('5')) == Decimal('25.00')

    def test_from_payments(self, calculator):
        payments = [make_payment('30'), make_payment('30')]
        assert calculator.total_commission(payments, Decimal('10')) == Decimal('6.00')

    def test_default_aggregation(self, calculator):
        amounts = [Decimal('0.10')] * 3
        assert calculator.aggregate(amounts, Decimal('5')) == Decimal('0.02')

    def test_configured_aggregation(self):
        calculator = CommissionCalculator(
            LoanEngineConfig(commission_aggregation=CommissionAggregation.PERCENTAGE_THEN_SUM)
        )
        amounts = [Decimal('0.10')] * 3
        assert calculator.aggregate(amounts, Decimal('5')) == Decimal('0.03')

    def test_empty(self, calculator):
        assert calculator.total_commission([], Decimal('5')) == ZERO
        assert calculator.total_commission_per_payment([], Decimal('5')) == ZERO
