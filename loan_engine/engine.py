"""
Loan Engine Facade

Wires the components together along the servicing data flow:
validation gates origination, the schedule is generated up front, and each
payment is penalty-assessed, allocated and turned into agent commission.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .allocation import PaymentAllocator
from .commission import CommissionCalculator
from .config import LoanEngineConfig, get_config
from .dates import DateLike
from .earnings import EarningsManager
from .lifecycle import LoanLifecycle
from .logging_config import get_logger, log_action
from .models import Earnings, Loan, PaymentAllocation
from .money import ZERO, Numeric
from .penalty import PenaltyCalculator
from .schedule import ScheduleGenerator
from .validation import LoanValidator


@dataclass(frozen=True)
class PaymentOutcome:
    """Everything the caller needs to persist after a payment"""
    allocation: PaymentAllocation
    commission: Decimal
    earnings: Optional[Earnings]

    @property
    def loan(self) -> Loan:
        return self.allocation.updated_loan


class LoanEngine:
    """
    Single entry point to the loan financial engine
    """

    def __init__(self, config: Optional[LoanEngineConfig] = None):
        self.config = config or get_config()
        self.validator = LoanValidator(self.config)
        self.schedule_generator = ScheduleGenerator(self.config)
        self.penalty_calculator = PenaltyCalculator(self.config)
        self.commission_calculator = CommissionCalculator(self.config)
        self.allocator = PaymentAllocator(self.config)
        self.lifecycle = LoanLifecycle(self.config, self.validator, self.schedule_generator)
        self.earnings_manager = EarningsManager(self.config)
        self.logger = get_logger("loanstar.engine")

    def record_payment(
        self,
        loan: Loan,
        amount: Numeric,
        as_of: DateLike,
        earnings: Optional[Earnings] = None,
        received_by: Optional[str] = None,
        notes: Optional[str] = None
    ) -> PaymentOutcome:
        """
        Process a collected payment end to end

        Args:
            loan: Loan snapshot
            amount: Amount collected
            as_of: Payment date, also the penalty assessment date
            earnings: Earnings of the agent servicing the loan, if any
            received_by: Agent who collected the payment
            notes: Free text stored on the payment record

        Returns:
            PaymentOutcome with the allocation, commission earned and updated earnings
        """
        assessed = self.penalty_calculator.assess_loan(loan, as_of)
        allocation = self.allocator.allocate(
            assessed, amount, as_of,
            received_by=received_by,
            notes=notes
        )

        commission = ZERO
        updated_earnings = earnings
        if earnings is not None and allocation.applied_to_interest > ZERO:
            commission = self.commission_calculator.commission(
                allocation.applied_to_interest,
                earnings.commission_percentage
            )
            updated_earnings = self.earnings_manager.credit_commission(earnings, commission)

        log_action(
            self.logger, "info", "Payment recorded",
            action="record_payment", resource=f"loan:{loan.loan_id}",
            extra={
                "payment_id": allocation.payment.payment_id,
                "amount": str(allocation.payment.amount),
                "commission": str(commission),
                "agent_id": earnings.agent_id if earnings is not None else None,
                "loan_status": allocation.updated_loan.status.value
            }
        )

        return PaymentOutcome(
            allocation=allocation,
            commission=commission,
            earnings=updated_earnings
        )
