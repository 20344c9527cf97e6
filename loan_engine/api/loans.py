"""
Loan endpoints
"""

from fastapi import APIRouter, Depends, status

from ..dates import from_iso
from ..engine import LoanEngine
from ..money import to_decimal
from .dependencies import get_engine, raise_http_error
from .schemas import (
    ApproveLoanRequest, LoanParametersRequest, OriginateLoanRequest, RejectLoanRequest
)


router = APIRouter()


@router.post("/validate")
async def validate_loan(
    request: LoanParametersRequest,
    engine: LoanEngine = Depends(get_engine)
):
    """Check loan parameters against business rules"""
    try:
        violations = engine.validator.validate(
            to_decimal(request.principal),
            to_decimal(request.monthly_interest_rate),
            request.tenure_months
        )
    except ValueError as e:
        raise_http_error(e)

    return {"valid": not violations, "violations": violations}


@router.post("/originate", status_code=status.HTTP_201_CREATED)
async def originate_loan(
    request: OriginateLoanRequest,
    engine: LoanEngine = Depends(get_engine)
):
    """Originate a loan awaiting approval, with its schedule"""
    try:
        loan = engine.lifecycle.originate_loan(
            terms=request.terms.to_terms(),
            account_id=request.account_id,
            created_by=request.created_by
        )
    except ValueError as e:
        raise_http_error(e)

    return {"loan": loan.to_dict(), "message": "Loan originated successfully"}


@router.post("/approve")
async def approve_loan(
    request: ApproveLoanRequest,
    engine: LoanEngine = Depends(get_engine)
):
    """Approve a pending loan"""
    try:
        loan = engine.lifecycle.approve_loan(
            request.loan.to_loan(),
            approved_by=request.approved_by,
            approval_date=from_iso(request.approval_date) if request.approval_date else None,
            activate=request.activate
        )
    except ValueError as e:
        raise_http_error(e)

    return {"loan": loan.to_dict()}


@router.post("/reject")
async def reject_loan(
    request: RejectLoanRequest,
    engine: LoanEngine = Depends(get_engine)
):
    """Reject a pending loan with a reason"""
    try:
        loan = engine.lifecycle.reject_loan(
            request.loan.to_loan(),
            reason=request.reason,
            rejected_by=request.rejected_by
        )
    except ValueError as e:
        raise_http_error(e)

    return {"loan": loan.to_dict()}
