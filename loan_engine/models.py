"""
Loan Engine Data Model

Immutable records exchanged with the persistence layer: loan terms,
amortization schedule entries, loans, payments, agent earnings and cashout
requests. Engine operations never mutate these in place; they return new
snapshots built with dataclasses.replace().
"""

from decimal import Decimal
from datetime import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
from enum import Enum
import uuid

from .dates import DateLike, ensure_utc, from_iso, to_iso
from .errors import ArithmeticInconsistency, InvalidAmount
from .money import ZERO, DEFAULT_TOLERANCE, round_money, to_decimal, within_tolerance


class PaymentFrequency(Enum):
    """Payment frequency options"""
    WEEKLY = "weekly"            # Every 7 days
    BI_MONTHLY = "bi-monthly"    # Every 15 days
    MONTHLY = "monthly"          # Every calendar month


class LoanStatus(Enum):
    """Loan lifecycle states"""
    PENDING_APPROVAL = "pending_approval"  # Created by an agent, schedule generated
    APPROVED = "approved"                  # Approved but not yet servicing
    ACTIVE = "active"                      # Accepting payments
    CLOSED = "closed"                      # Outstanding balance reached zero
    REJECTED = "rejected"                  # Terminal, carries a reason

    @property
    def is_terminal(self) -> bool:
        return self in (LoanStatus.CLOSED, LoanStatus.REJECTED)


class PaymentType(Enum):
    """Kinds of collection events"""
    REGULAR = "regular"
    PARTIAL = "partial"
    PENALTY = "penalty"


class CashoutStatus(Enum):
    """Cashout request states"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _new_id() -> str:
    return str(uuid.uuid4())


def _set(instance, name: str, value) -> None:
    object.__setattr__(instance, name, value)


def _money_field(instance, name: str, allow_negative: bool = False) -> None:
    value = round_money(getattr(instance, name))
    if value < ZERO and not allow_negative:
        raise InvalidAmount(f"{name} cannot be negative, got {value}")
    _set(instance, name, value)


def _optional_date(value: Optional[str]) -> Optional[datetime]:
    return from_iso(value) if value else None


def _optional_iso(value: Optional[datetime]) -> Optional[str]:
    return to_iso(value) if value else None


@dataclass(frozen=True)
class LoanTerms:
    """Loan terms as entered at origination"""
    principal: Decimal
    monthly_interest_rate: Decimal       # Percent per month, e.g. 4 for 4%
    tenure_months: int
    payment_frequency: PaymentFrequency
    start_date: DateLike

    def __post_init__(self):
        _set(self, 'principal', round_money(self.principal))
        _set(self, 'monthly_interest_rate', to_decimal(self.monthly_interest_rate))
        _set(self, 'tenure_months', int(self.tenure_months))
        if not isinstance(self.payment_frequency, PaymentFrequency):
            _set(self, 'payment_frequency', PaymentFrequency(self.payment_frequency))
        _set(self, 'start_date', ensure_utc(self.start_date))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'principal': str(self.principal),
            'monthly_interest_rate': str(self.monthly_interest_rate),
            'tenure_months': self.tenure_months,
            'payment_frequency': self.payment_frequency.value,
            'start_date': to_iso(self.start_date),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LoanTerms':
        return cls(
            principal=to_decimal(data['principal']),
            monthly_interest_rate=to_decimal(data['monthly_interest_rate']),
            tenure_months=int(data['tenure_months']),
            payment_frequency=PaymentFrequency(data['payment_frequency']),
            start_date=from_iso(data['start_date']),
        )


@dataclass(frozen=True)
class ScheduleEntry:
    """Single entry in an amortization schedule"""
    payment_number: int
    due_date: DateLike
    principal_due: Decimal
    interest_due: Decimal
    total_due: Decimal
    remaining_balance_after: Decimal
    penalty: Decimal = ZERO
    paid_amount: Decimal = ZERO
    is_paid: bool = False
    paid_date: Optional[datetime] = None

    def __post_init__(self):
        if self.payment_number < 1:
            raise ValueError(f"Payment number must be at least 1, got {self.payment_number}")
        _set(self, 'due_date', ensure_utc(self.due_date))
        if self.paid_date is not None:
            _set(self, 'paid_date', ensure_utc(self.paid_date))

        _money_field(self, 'principal_due')
        _money_field(self, 'interest_due')
        _money_field(self, 'total_due')
        _money_field(self, 'remaining_balance_after')
        _money_field(self, 'penalty')
        _money_field(self, 'paid_amount')

        # Validate that total equals principal + interest
        if not within_tolerance(self.principal_due + self.interest_due, self.total_due):
            raise ValueError(f"Total due {self.total_due} does not equal "
                             f"principal {self.principal_due} + interest {self.interest_due}")

    @property
    def remaining_due(self) -> Decimal:
        """Scheduled amount not yet paid"""
        return max(ZERO, self.total_due - self.paid_amount)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'payment_number': self.payment_number,
            'due_date': to_iso(self.due_date),
            'principal_due': str(self.principal_due),
            'interest_due': str(self.interest_due),
            'total_due': str(self.total_due),
            'remaining_balance_after': str(self.remaining_balance_after),
            'penalty': str(self.penalty),
            'paid_amount': str(self.paid_amount),
            'is_paid': self.is_paid,
            'paid_date': _optional_iso(self.paid_date),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScheduleEntry':
        return cls(
            payment_number=int(data['payment_number']),
            due_date=from_iso(data['due_date']),
            principal_due=to_decimal(data['principal_due']),
            interest_due=to_decimal(data['interest_due']),
            total_due=to_decimal(data['total_due']),
            remaining_balance_after=to_decimal(data['remaining_balance_after']),
            penalty=to_decimal(data.get('penalty') or '0'),
            paid_amount=to_decimal(data.get('paid_amount') or '0'),
            is_paid=bool(data.get('is_paid', False)),
            paid_date=_optional_date(data.get('paid_date')),
        )


@dataclass(frozen=True)
class Loan:
    """Loan aggregate snapshot"""
    terms: LoanTerms
    schedule: Tuple[ScheduleEntry, ...] = ()
    status: LoanStatus = LoanStatus.PENDING_APPROVAL

    # Balances
    outstanding_balance: Optional[Decimal] = None   # Remaining principal, starts at principal
    total_paid: Decimal = ZERO                      # Every payment amount received
    total_penalties_outstanding: Decimal = ZERO
    total_penalties_paid: Decimal = ZERO

    # Identity and workflow
    loan_id: str = field(default_factory=_new_id)
    account_id: Optional[str] = None
    created_by: Optional[str] = None
    approved_by: Optional[str] = None
    approval_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    version: int = 0

    def __post_init__(self):
        if self.outstanding_balance is None:
            _set(self, 'outstanding_balance', self.terms.principal)
        if not isinstance(self.status, LoanStatus):
            _set(self, 'status', LoanStatus(self.status))
        _set(self, 'schedule', tuple(self.schedule))
        if self.approval_date is not None:
            _set(self, 'approval_date', ensure_utc(self.approval_date))

        _money_field(self, 'outstanding_balance')
        _money_field(self, 'total_paid')
        _money_field(self, 'total_penalties_outstanding')
        _money_field(self, 'total_penalties_paid')

    @property
    def principal(self) -> Decimal:
        return self.terms.principal

    @property
    def is_active(self) -> bool:
        """Check if loan accepts payments"""
        return self.status == LoanStatus.ACTIVE

    @property
    def is_closed(self) -> bool:
        return self.status == LoanStatus.CLOSED

    @property
    def total_scheduled(self) -> Decimal:
        """Sum of every scheduled installment"""
        return round_money(sum((entry.total_due for entry in self.schedule), ZERO))

    @property
    def next_unpaid_entry(self) -> Optional[ScheduleEntry]:
        for entry in self.schedule:
            if not entry.is_paid:
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert loan to dictionary"""
        return {
            'loan_id': self.loan_id,
            'account_id': self.account_id,
            'terms': self.terms.to_dict(),
            'schedule': [entry.to_dict() for entry in self.schedule],
            'status': self.status.value,
            'outstanding_balance': str(self.outstanding_balance),
            'total_paid': str(self.total_paid),
            'total_penalties_outstanding': str(self.total_penalties_outstanding),
            'total_penalties_paid': str(self.total_penalties_paid),
            'created_by': self.created_by,
            'approved_by': self.approved_by,
            'approval_date': _optional_iso(self.approval_date),
            'rejection_reason': self.rejection_reason,
            'version': self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Loan':
        """Convert dictionary to loan"""
        terms = LoanTerms.from_dict(data['terms'])
        outstanding = data.get('outstanding_balance')

        return cls(
            terms=terms,
            schedule=tuple(ScheduleEntry.from_dict(item) for item in data.get('schedule') or []),
            status=LoanStatus(data.get('status', LoanStatus.PENDING_APPROVAL.value)),
            outstanding_balance=to_decimal(outstanding) if outstanding is not None else None,
            total_paid=to_decimal(data.get('total_paid') or '0'),
            total_penalties_outstanding=to_decimal(data.get('total_penalties_outstanding') or '0'),
            total_penalties_paid=to_decimal(data.get('total_penalties_paid') or '0'),
            loan_id=data.get('loan_id') or _new_id(),
            account_id=data.get('account_id'),
            created_by=data.get('created_by'),
            approved_by=data.get('approved_by'),
            approval_date=_optional_date(data.get('approval_date')),
            rejection_reason=data.get('rejection_reason'),
            version=int(data.get('version', 0)),
        )


@dataclass(frozen=True)
class Payment:
    """Record of a collected payment and how it was applied"""
    amount: Decimal
    payment_date: DateLike
    applied_to_principal: Decimal
    applied_to_interest: Decimal
    applied_to_penalty: Decimal
    loan_id: Optional[str] = None
    payment_type: PaymentType = PaymentType.REGULAR
    received_by: Optional[str] = None
    notes: Optional[str] = None
    payment_id: str = field(default_factory=_new_id)

    def __post_init__(self):
        _set(self, 'amount', round_money(self.amount))
        if self.amount <= ZERO:
            raise InvalidAmount(f"Payment amount must be positive, got {self.amount}")
        _set(self, 'payment_date', ensure_utc(self.payment_date))
        if not isinstance(self.payment_type, PaymentType):
            _set(self, 'payment_type', PaymentType(self.payment_type))

        _money_field(self, 'applied_to_principal')
        _money_field(self, 'applied_to_interest')
        _money_field(self, 'applied_to_penalty')

        applied = self.applied_to_principal + self.applied_to_interest + self.applied_to_penalty
        if not within_tolerance(applied, self.amount, DEFAULT_TOLERANCE):
            raise ArithmeticInconsistency(
                f"Applied amounts {applied} do not sum to payment amount {self.amount}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'payment_id': self.payment_id,
            'loan_id': self.loan_id,
            'amount': str(self.amount),
            'payment_date': to_iso(self.payment_date),
            'payment_type': self.payment_type.value,
            'applied_to_principal': str(self.applied_to_principal),
            'applied_to_interest': str(self.applied_to_interest),
            'applied_to_penalty': str(self.applied_to_penalty),
            'received_by': self.received_by,
            'notes': self.notes,
        }


@dataclass(frozen=True)
class PaymentAllocation:
    """Result of applying a payment to a loan"""
    applied_to_penalty: Decimal
    applied_to_interest: Decimal
    applied_to_principal: Decimal
    updated_loan: Loan
    payment: Payment
    schedule_entry_number: Optional[int] = None   # Entry the payment landed on

    @property
    def total_applied(self) -> Decimal:
        return self.applied_to_penalty + self.applied_to_interest + self.applied_to_principal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'applied_to_penalty': str(self.applied_to_penalty),
            'applied_to_interest': str(self.applied_to_interest),
            'applied_to_principal': str(self.applied_to_principal),
            'schedule_entry_number': self.schedule_entry_number,
            'payment': self.payment.to_dict(),
            'updated_loan': self.updated_loan.to_dict(),
        }


@dataclass(frozen=True)
class Earnings:
    """Agent earnings snapshot"""
    agent_id: str
    commission_percentage: Decimal
    total_earnings: Decimal = ZERO
    collectible_earnings: Decimal = ZERO   # Earned but not yet cashed out
    cashed_out_amount: Decimal = ZERO
    version: int = 0

    def __post_init__(self):
        percentage = to_decimal(self.commission_percentage)
        if percentage < Decimal('0') or percentage > Decimal('100'):
            raise InvalidAmount(f"Commission percentage must be between 0 and 100, got {percentage}")
        _set(self, 'commission_percentage', percentage)

        _money_field(self, 'total_earnings')
        _money_field(self, 'collectible_earnings')
        _money_field(self, 'cashed_out_amount')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'agent_id': self.agent_id,
            'commission_percentage': str(self.commission_percentage),
            'total_earnings': str(self.total_earnings),
            'collectible_earnings': str(self.collectible_earnings),
            'cashed_out_amount': str(self.cashed_out_amount),
            'version': self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Earnings':
        return cls(
            agent_id=data['agent_id'],
            commission_percentage=to_decimal(data['commission_percentage']),
            total_earnings=to_decimal(data.get('total_earnings') or '0'),
            collectible_earnings=to_decimal(data.get('collectible_earnings') or '0'),
            cashed_out_amount=to_decimal(data.get('cashed_out_amount') or '0'),
            version=int(data.get('version', 0)),
        )


@dataclass(frozen=True)
class CashoutRequest:
    """Agent request to withdraw collectible earnings"""
    agent_id: str
    amount: Decimal
    request_date: DateLike
    status: CashoutStatus = CashoutStatus.PENDING
    request_id: str = field(default_factory=_new_id)
    approval_date: Optional[datetime] = None
    approved_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        _set(self, 'amount', round_money(self.amount))
        if self.amount <= ZERO:
            raise InvalidAmount(f"Cashout amount must be positive, got {self.amount}")
        _set(self, 'request_date', ensure_utc(self.request_date))
        if not isinstance(self.status, CashoutStatus):
            _set(self, 'status', CashoutStatus(self.status))
        if self.approval_date is not None:
            _set(self, 'approval_date', ensure_utc(self.approval_date))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'request_id': self.request_id,
            'agent_id': self.agent_id,
            'amount': str(self.amount),
            'status': self.status.value,
            'request_date': to_iso(self.request_date),
            'approval_date': _optional_iso(self.approval_date),
            'approved_by': self.approved_by,
            'rejection_reason': self.rejection_reason,
            'notes': self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CashoutRequest':
        return cls(
            agent_id=data['agent_id'],
            amount=to_decimal(data['amount']),
            request_date=from_iso(data['request_date']),
            status=CashoutStatus(data.get('status', CashoutStatus.PENDING.value)),
            request_id=data.get('request_id') or _new_id(),
            approval_date=_optional_date(data.get('approval_date')),
            approved_by=data.get('approved_by'),
            rejection_reason=data.get('rejection_reason'),
            notes=data.get('notes'),
        )


@dataclass(frozen=True)
class PenaltyDetails:
    """Penalty breakdown for one overdue amount"""
    days_overdue: int
    penalty_per_day: Decimal
    total_penalty: Decimal
    is_past_due: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'days_overdue': self.days_overdue,
            'penalty_per_day': str(self.penalty_per_day),
            'total_penalty': str(self.total_penalty),
            'is_past_due': self.is_past_due,
        }
