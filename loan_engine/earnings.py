"""
Earnings Module

Agent earnings: commission credits from collected interest and cashout
requests against collectible earnings. Collectible earnings never go
negative.
"""

from dataclasses import replace
from typing import Optional, Tuple

from .config import LoanEngineConfig, get_config
from .dates import DateLike, ensure_utc
from .errors import InsufficientEarnings, InvalidAmount, InvalidLoanState
from .logging_config import get_logger, log_action
from .models import CashoutRequest, CashoutStatus, Earnings
from .money import ZERO, Numeric, round_money


class EarningsManager:
    """
    Credits commissions and decides cashout requests
    """

    def __init__(self, config: Optional[LoanEngineConfig] = None):
        self.config = config or get_config()
        self.logger = get_logger("loanstar.earnings")

    def credit_commission(self, earnings: Earnings, commission: Numeric) -> Earnings:
        """Add a commission to total and collectible earnings"""
        amount = round_money(commission)
        if amount < ZERO:
            raise InvalidAmount(f"Commission cannot be negative, got {amount}")
        if amount == ZERO:
            return earnings

        updated = replace(
            earnings,
            total_earnings=earnings.total_earnings + amount,
            collectible_earnings=earnings.collectible_earnings + amount,
            version=earnings.version + 1
        )

        log_action(
            self.logger, "info", "Commission credited",
            action="credit_commission", resource=f"agent:{earnings.agent_id}",
            extra={
                "commission": str(amount),
                "collectible_earnings": str(updated.collectible_earnings)
            }
        )

        return updated

    def request_cashout(
        self,
        earnings: Earnings,
        amount: Numeric,
        request_date: DateLike,
        notes: Optional[str] = None
    ) -> CashoutRequest:
        """
        Create a pending cashout request

        Args:
            earnings: Agent earnings snapshot
            amount: Amount requested
            request_date: When the request was made
            notes: Optional note from the agent

        Returns:
            PENDING CashoutRequest

        Raises:
            InvalidAmount: If amount is below the configured minimum
            InsufficientEarnings: If amount exceeds collectible earnings
        """
        amount = round_money(amount)
        if amount < self.config.min_cashout_amount:
            raise InvalidAmount(f"Minimum cashout amount is {self.config.min_cashout_amount}")
        if amount > earnings.collectible_earnings:
            raise InsufficientEarnings(
                f"Insufficient collectible earnings: requested {amount}, "
                f"available {earnings.collectible_earnings}"
            )

        request = CashoutRequest(
            agent_id=earnings.agent_id,
            amount=amount,
            request_date=request_date,
            notes=notes
        )

        log_action(
            self.logger, "info", "Cashout requested",
            action="request_cashout", resource=f"cashout:{request.request_id}",
            extra={"agent_id": earnings.agent_id, "amount": str(amount)}
        )

        return request

    def approve_cashout(
        self,
        earnings: Earnings,
        request: CashoutRequest,
        approved_by: Optional[str] = None,
        approval_date: Optional[DateLike] = None
    ) -> Tuple[Earnings, CashoutRequest]:
        """
        Approve a pending cashout, moving the amount out of collectible earnings

        Returns:
            (updated Earnings, approved CashoutRequest)
        """
        self._ensure_pending(request)
        if request.agent_id != earnings.agent_id:
            raise ValueError(
                f"Cashout {request.request_id} belongs to agent {request.agent_id}, "
                f"not {earnings.agent_id}"
            )
        if request.amount > earnings.collectible_earnings:
            raise InsufficientEarnings(
                f"Cannot cash out {request.amount}, only "
                f"{earnings.collectible_earnings} collectible"
            )

        updated_earnings = replace(
            earnings,
            collectible_earnings=earnings.collectible_earnings - request.amount,
            cashed_out_amount=earnings.cashed_out_amount + request.amount,
            version=earnings.version + 1
        )
        approved = replace(
            request,
            status=CashoutStatus.APPROVED,
            approved_by=approved_by,
            approval_date=ensure_utc(approval_date) if approval_date is not None else None
        )

        log_action(
            self.logger, "info", "Cashout approved",
            action="approve_cashout", resource=f"cashout:{request.request_id}",
            extra={
                "agent_id": earnings.agent_id,
                "amount": str(request.amount),
                "approved_by": approved_by
            }
        )

        return updated_earnings, approved

    def reject_cashout(
        self,
        request: CashoutRequest,
        reason: str,
        rejected_by: Optional[str] = None
    ) -> CashoutRequest:
        """Reject a pending cashout; earnings are untouched"""
        self._ensure_pending(request)
        if not reason or not reason.strip():
            raise ValueError("Rejection reason is required")

        log_action(
            self.logger, "info", "Cashout rejected",
            action="reject_cashout", resource=f"cashout:{request.request_id}",
            extra={"agent_id": request.agent_id, "reason": reason}
        )

        return replace(
            request,
            status=CashoutStatus.REJECTED,
            rejection_reason=reason.strip(),
            approved_by=rejected_by
        )

    def _ensure_pending(self, request: CashoutRequest) -> None:
        if request.status != CashoutStatus.PENDING:
            raise InvalidLoanState(
                f"Cashout {request.request_id} is already {request.status.value}"
            )
