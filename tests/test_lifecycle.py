"""
Test suite for loan lifecycle

Origination, approval, rejection and closure through the transition table.
"""

import pytest
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal

from loan_engine.config import LoanEngineConfig
from loan_engine.errors import InvalidLoanState, LoanValidationError
from loan_engine.lifecycle import ALLOWED_TRANSITIONS, LoanLifecycle, can_transition
from loan_engine.models import LoanStatus, LoanTerms, PaymentFrequency
from loan_engine.money import ZERO


@pytest.fixture
def lifecycle():
    return LoanLifecycle(LoanEngineConfig())


@pytest.fixture
def terms():
    return LoanTerms(
        principal=Decimal('10000'),
        monthly_interest_rate=Decimal('4'),
        tenure_months=3,
        payment_frequency=PaymentFrequency.MONTHLY,
        start_date=date(2024, 1, 15)
    )


@pytest.fixture
def pending_loan(lifecycle, terms):
    return lifecycle.originate_loan(terms, account_id="acct-1", created_by="agent-1")


class TestTransitionTable:
    """Test the status transition table"""

    def test_every_status_has_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(LoanStatus)

    def test_terminal_statuses(self):
        for status in LoanStatus:
            assert status.is_terminal == (not ALLOWED_TRANSITIONS[status])

    def test_allowed(self):
        assert can_transition(LoanStatus.PENDING_APPROVAL, LoanStatus.ACTIVE)
        assert can_transition(LoanStatus.APPROVED, LoanStatus.ACTIVE)
        assert can_transition(LoanStatus.ACTIVE, LoanStatus.CLOSED)

    def test_not_allowed(self):
        assert not can_transition(LoanStatus.ACTIVE, LoanStatus.REJECTED)
        assert not can_transition(LoanStatus.CLOSED, LoanStatus.ACTIVE)
        assert not can_transition(LoanStatus.REJECTED, LoanStatus.APPROVED)


class TestOrigination:

    def test_originate(self, pending_loan, terms):
        assert pending_loan.status == LoanStatus.PENDING_APPROVAL
        assert len(pending_loan.schedule) == 3
        assert pending_loan.outstanding_balance == Decimal('10000.00')
        assert pending_loan.total_paid == ZERO
        assert pending_loan.account_id == "acct-1"
        assert pending_loan.created_by == "agent-1"
        assert pending_loan.terms == terms
        assert pending_loan.total_scheduled == Decimal('10810.46')

    def test_originate_with_id(self, lifecycle, terms):
        loan = lifecycle.originate_loan(terms, loan_id="loan-42")
        assert loan.loan_id == "loan-42"

    def test_invalid_terms(self, lifecycle):
        terms = LoanTerms(
            principal=Decimal('10000'),
            monthly_interest_rate=Decimal('8'),
            tenure_months=24,
            payment_frequency=PaymentFrequency.WEEKLY,
            start_date=date(2024, 1, 15)
        )
        with pytest.raises(LoanValidationError) as exc_info:
            lifecycle.originate_loan(terms)

        assert len(exc_info.value.violations) == 2


class TestApproval:
    """Test approval and activation"""

    def test_approve_activates(self, lifecycle, pending_loan):
        loan = lifecycle.approve_loan(pending_loan, approved_by="admin", approval_date=date(2024, 1, 16))

        assert loan.status == LoanStatus.ACTIVE
        assert loan.approved_by == "admin"
        assert loan.approval_date == datetime(2024, 1, 16, tzinfo=timezone.utc)
        assert loan.version == pending_loan.version + 1
        assert pending_loan.status == LoanStatus.PENDING_APPROVAL

    def test_approve_then_activate(self, lifecycle, pending_loan):
        approved = lifecycle.approve_loan(pending_loan, approved_by="admin", activate=False)
        assert approved.status == LoanStatus.APPROVED

        active = lifecycle.activate_loan(approved)
        assert active.status == LoanStatus.ACTIVE
        assert active.approved_by == "admin"

    def test_approve_active_loan(self, lifecycle, pending_loan):
        active = lifecycle.approve_loan(pending_loan)
        with pytest.raises(InvalidLoanState, match="from active to active"):
            lifecycle.approve_loan(active)


class TestRejection:

    def test_reject(self, lifecycle, pending_loan):
        loan = lifecycle.reject_loan(pending_loan, "Insufficient collateral", rejected_by="admin")
        assert loan.status == LoanStatus.REJECTED
        assert loan.rejection_reason == "Insufficient collateral"

    def test_reason_required(self, lifecycle, pending_loan):
        with pytest.raises(ValueError, match="reason is required"):
            lifecycle.reject_loan(pending_loan, "")

    def test_reject_active_loan(self, lifecycle, pending_loan):
        active = lifecycle.approve_loan(pending_loan)
        with pytest.raises(InvalidLoanState):
            lifecycle.reject_loan(active, "Changed our mind")

    def test_rejected_is_terminal(self, lifecycle, pending_loan):
        rejected = lifecycle.reject_loan(pending_loan, "Incomplete documents")
        with pytest.raises(InvalidLoanState):
            lifecycle.approve_loan(rejected)


class TestClosure:

    def test_close_settled_loan(self, lifecycle, pending_loan):
        active = lifecycle.approve_loan(pending_loan)
        settled = replace(active, outstanding_balance=ZERO)

        closed = lifecycle.close_if_settled(settled)
        assert closed.status == LoanStatus.CLOSED

    def test_unsettled_loan_stays_active(self, lifecycle, pending_loan):
        active = lifecycle.approve_loan(pending_loan)
        assert lifecycle.close_if_settled(active) is active
