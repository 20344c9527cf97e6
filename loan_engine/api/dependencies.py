"""
Shared API dependencies and error mapping
"""

from typing import NoReturn, Optional

from fastapi import HTTPException, status

from ..engine import LoanEngine
from ..errors import (
    ArithmeticInconsistency, InsufficientEarnings, InvalidAmount,
    InvalidLoanState, LoanValidationError
)


_engine: Optional[LoanEngine] = None


def get_engine() -> LoanEngine:
    """Dependency returning the shared engine instance"""
    global _engine
    if _engine is None:
        _engine = LoanEngine()
    return _engine


def raise_http_error(error: ValueError) -> NoReturn:
    """Translate an engine error into the matching HTTP error"""
    if isinstance(error, LoanValidationError):
        raise HTTPException(
            status_code=422,
            detail={"message": "Loan parameters are invalid", "violations": error.violations}
        )
    if isinstance(error, InvalidLoanState):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, ArithmeticInconsistency):
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))
    if isinstance(error, (InvalidAmount, InsufficientEarnings)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
