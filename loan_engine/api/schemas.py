"""
Pydantic schemas for API requests and responses

Amounts travel as decimal strings and instants as ISO-8601 strings, the
same shape the engine records produce with to_dict().
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from ..models import CashoutRequest, Earnings, Loan, LoanTerms


class LoanParametersRequest(BaseModel):
    principal: str = Field(..., description="Decimal amount as string")
    monthly_interest_rate: str = Field(..., description="Percent per month, e.g. '4'")
    tenure_months: int


class LoanTermsModel(BaseModel):
    principal: str = Field(..., description="Decimal amount as string")
    monthly_interest_rate: str = Field(..., description="Percent per month, e.g. '4'")
    tenure_months: int
    payment_frequency: str = Field(..., description="weekly, bi-monthly or monthly")
    start_date: str = Field(..., description="ISO date or datetime, interpreted as UTC")

    def to_terms(self) -> LoanTerms:
        return LoanTerms.from_dict(self.model_dump())


class ScheduleEntryModel(BaseModel):
    payment_number: int
    due_date: str
    principal_due: str
    interest_due: str
    total_due: str
    remaining_balance_after: str
    penalty: str = "0"
    paid_amount: str = "0"
    is_paid: bool = False
    paid_date: Optional[str] = None


class LoanModel(BaseModel):
    loan_id: Optional[str] = None
    account_id: Optional[str] = None
    terms: LoanTermsModel
    schedule: List[ScheduleEntryModel] = Field(default_factory=list)
    status: str = "pending_approval"
    outstanding_balance: Optional[str] = None
    total_paid: str = "0"
    total_penalties_outstanding: str = "0"
    total_penalties_paid: str = "0"
    created_by: Optional[str] = None
    approved_by: Optional[str] = None
    approval_date: Optional[str] = None
    rejection_reason: Optional[str] = None
    version: int = 0

    def to_loan(self) -> Loan:
        return Loan.from_dict(self.model_dump())


class EarningsModel(BaseModel):
    agent_id: str
    commission_percentage: str
    total_earnings: str = "0"
    collectible_earnings: str = "0"
    cashed_out_amount: str = "0"
    version: int = 0

    def to_earnings(self) -> Earnings:
        return Earnings.from_dict(self.model_dump())


class CashoutRequestModel(BaseModel):
    request_id: Optional[str] = None
    agent_id: str
    amount: str
    status: str = "pending"
    request_date: str
    approval_date: Optional[str] = None
    approved_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None

    def to_cashout(self) -> CashoutRequest:
        return CashoutRequest.from_dict(self.model_dump())


# Loan schemas
class OriginateLoanRequest(BaseModel):
    terms: LoanTermsModel
    account_id: Optional[str] = None
    created_by: Optional[str] = None


class ApproveLoanRequest(BaseModel):
    loan: LoanModel
    approved_by: Optional[str] = None
    approval_date: Optional[str] = None
    activate: bool = True


class RejectLoanRequest(BaseModel):
    loan: LoanModel
    reason: str
    rejected_by: Optional[str] = None


# Penalty schemas
class PenaltyRequest(BaseModel):
    due_amount: str
    due_date: str
    as_of: str


class AssessPenaltiesRequest(BaseModel):
    loan: LoanModel
    as_of: str


# Payment schemas
class AllocatePaymentRequest(BaseModel):
    loan: LoanModel
    amount: str = Field(..., description="Decimal amount as string")
    payment_date: str
    earnings: Optional[EarningsModel] = None
    received_by: Optional[str] = None
    notes: Optional[str] = None


# Commission and earnings schemas
class CommissionRequest(BaseModel):
    interest_amount: str
    commission_percentage: str


class TotalCommissionRequest(BaseModel):
    interest_amounts: List[str]
    commission_percentage: str
    aggregation: Optional[str] = Field(
        None, description="sum_then_percentage or percentage_then_sum; configured default if omitted"
    )


class RequestCashoutRequest(BaseModel):
    earnings: EarningsModel
    amount: str
    request_date: str
    notes: Optional[str] = None


class ApproveCashoutRequest(BaseModel):
    earnings: EarningsModel
    cashout: CashoutRequestModel
    approved_by: Optional[str] = None
    approval_date: Optional[str] = None


class RejectCashoutRequest(BaseModel):
    cashout: CashoutRequestModel
    reason: str
    rejected_by: Optional[str] = None
