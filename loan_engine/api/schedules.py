"""
Amortization schedule endpoints
"""

from fastapi import APIRouter, Depends

from ..engine import LoanEngine
from ..money import ZERO, round_money
from .dependencies import get_engine, raise_http_error
from .schemas import LoanTermsModel


router = APIRouter()


@router.post("")
async def preview_schedule(
    request: LoanTermsModel,
    engine: LoanEngine = Depends(get_engine)
):
    """Generate an amortization schedule without originating a loan"""
    try:
        terms = request.to_terms()
        schedule = engine.schedule_generator.generate_for_terms(terms)
    except ValueError as e:
        raise_http_error(e)

    total_interest = round_money(sum((entry.interest_due for entry in schedule), ZERO))

    return {
        "installment": str(schedule[0].total_due),
        "payments": len(schedule),
        "total_interest": str(total_interest),
        "total_amount": str(terms.principal + total_interest),
        "schedule": [entry.to_dict() for entry in schedule]
    }
