"""
Payment endpoints
"""

from fastapi import APIRouter, Depends

from ..dates import from_iso
from ..engine import LoanEngine
from ..money import to_decimal
from .dependencies import get_engine, raise_http_error
from .schemas import AllocatePaymentRequest


router = APIRouter()


@router.post("/allocate")
async def allocate_payment(
    request: AllocatePaymentRequest,
    engine: LoanEngine = Depends(get_engine)
):
    """Assess penalties, allocate a payment and credit the agent's commission"""
    try:
        outcome = engine.record_payment(
            request.loan.to_loan(),
            to_decimal(request.amount),
            from_iso(request.payment_date),
            earnings=request.earnings.to_earnings() if request.earnings else None,
            received_by=request.received_by,
            notes=request.notes
        )
    except ValueError as e:
        raise_http_error(e)

    result = outcome.allocation.to_dict()
    result["commission"] = str(outcome.commission)
    result["earnings"] = outcome.earnings.to_dict() if outcome.earnings else None
    return result
