"""
Penalty endpoints
"""

from fastapi import APIRouter, Depends

from ..dates import from_iso
from ..engine import LoanEngine
from ..money import to_decimal
from .dependencies import get_engine, raise_http_error
from .schemas import AssessPenaltiesRequest, PenaltyRequest


router = APIRouter()


@router.post("")
async def calculate_penalty(
    request: PenaltyRequest,
    engine: LoanEngine = Depends(get_engine)
):
    """Penalty breakdown for one overdue amount"""
    try:
        details = engine.penalty_calculator.penalty_details(
            to_decimal(request.due_amount),
            from_iso(request.due_date),
            from_iso(request.as_of)
        )
    except ValueError as e:
        raise_http_error(e)

    return details.to_dict()


@router.post("/assess")
async def assess_penalties(
    request: AssessPenaltiesRequest,
    engine: LoanEngine = Depends(get_engine)
):
    """Re-assess accrued penalties on a loan"""
    try:
        loan = engine.penalty_calculator.assess_loan(request.loan.to_loan(), from_iso(request.as_of))
    except ValueError as e:
        raise_http_error(e)

    return {"loan": loan.to_dict()}
