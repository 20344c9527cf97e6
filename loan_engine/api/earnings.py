"""
Commission and earnings endpoints
"""

from fastapi import APIRouter, Depends, status

from ..config import CommissionAggregation
from ..dates import from_iso
from ..engine import LoanEngine
from ..money import to_decimal
from .dependencies import get_engine, raise_http_error
from .schemas import (
    ApproveCashoutRequest, CommissionRequest, RejectCashoutRequest,
    RequestCashoutRequest, TotalCommissionRequest
)


router = APIRouter()


@router.post("/commissions")
async def calculate_commission(
    request: CommissionRequest,
    engine: LoanEngine = Depends(get_engine)
):
    """Commission on an interest amount"""
    try:
        commission = engine.commission_calculator.commission(
            to_decimal(request.interest_amount),
            to_decimal(request.commission_percentage)
        )
    except ValueError as e:
        raise_http_error(e)

    return {"commission": str(commission)}


@router.post("/commissions/total")
async def calculate_total_commission(
    request: TotalCommissionRequest,
    engine: LoanEngine = Depends(get_engine)
):
    """Total commission over several interest amounts"""
    calculator = engine.commission_calculator
    try:
        interest_amounts = [to_decimal(amount) for amount in request.interest_amounts]
        percentage = to_decimal(request.commission_percentage)

        if request.aggregation is None:
            aggregation = CommissionAggregation(engine.config.commission_aggregation)
            total = calculator.aggregate(interest_amounts, percentage)
        else:
            aggregation = CommissionAggregation(request.aggregation)
            if aggregation == CommissionAggregation.SUM_THEN_PERCENTAGE:
                total = calculator.total_commission(interest_amounts, percentage)
            else:
                total = calculator.total_commission_per_payment(interest_amounts, percentage)
    except ValueError as e:
        raise_http_error(e)

    return {"commission": str(total), "aggregation": aggregation.value}


@router.post("/earnings/cashouts", status_code=status.HTTP_201_CREATED)
async def request_cashout(
    request: RequestCashoutRequest,
    engine: LoanEngine = Depends(get_engine)
):
    """Create a pending cashout request"""
    try:
        cashout = engine.earnings_manager.request_cashout(
            request.earnings.to_earnings(),
            to_decimal(request.amount),
            from_iso(request.request_date),
            notes=request.notes
        )
    except ValueError as e:
        raise_http_error(e)

    return {"cashout": cashout.to_dict()}


@router.post("/earnings/cashouts/approve")
async def approve_cashout(
    request: ApproveCashoutRequest,
    engine: LoanEngine = Depends(get_engine)
):
    """Approve a pending cashout"""
    try:
        earnings, cashout = engine.earnings_manager.approve_cashout(
            request.earnings.to_earnings(),
            request.cashout.to_cashout(),
            approved_by=request.approved_by,
            approval_date=from_iso(request.approval_date) if request.approval_date else None
        )
    except ValueError as e:
        raise_http_error(e)

    return {"earnings": earnings.to_dict(), "cashout": cashout.to_dict()}


@router.post("/earnings/cashouts/reject")
async def reject_cashout(
    request: RejectCashoutRequest,
    engine: LoanEngine = Depends(get_engine)
):
    """Reject a pending cashout"""
    try:
        cashout = engine.earnings_manager.reject_cashout(
            request.cashout.to_cashout(),
            reason=request.reason,
            rejected_by=request.rejected_by
        )
    except ValueError as e:
        raise_http_error(e)

    return {"cashout": cashout.to_dict()}
