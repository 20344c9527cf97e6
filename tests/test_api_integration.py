"""
Integration tests for the Loan Engine API
Tests end-to-end workflows using FastAPI TestClient
"""

import pytest
from fastapi.testclient import TestClient

from loan_engine.api import app
from loan_engine.api.dependencies import get_engine
from loan_engine.config import LoanEngineConfig
from loan_engine.engine import LoanEngine


TERMS = {
    "principal": "10000",
    "monthly_interest_rate": "4",
    "tenure_months": 3,
    "payment_frequency": "monthly",
    "start_date": "2024-01-15"
}


@pytest.fixture
def client():
    """Create a test client backed by an engine with default configuration"""
    engine = LoanEngine(LoanEngineConfig())
    app.dependency_overrides[get_engine] = lambda: engine

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def pending_loan(client):
    r = client.post("/loans/originate", json={"terms": TERMS, "created_by": "agent-1"})
    assert r.status_code == 201
    return r.json()["loan"]


@pytest.fixture
def active_loan(client, pending_loan):
    r = client.post("/loans/approve", json={"loan": pending_loan, "approved_by": "admin"})
    assert r.status_code == 200
    return r.json()["loan"]


@pytest.fixture
def earnings():
    return {
        "agent_id": "agent-1",
        "commission_percentage": "10",
        "total_earnings": "100",
        "collectible_earnings": "100"
    }


class TestHealthEndpoints:
    """Test basic health and root endpoints"""

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"

    def test_root(self, client):
        r = client.get("/")
        assert r.status_code == 200
        data = r.json()
        assert data["name"] == "Loanstar Loan Engine API"
        assert "endpoints" in data


class TestLoanEndpoints:
    """Test validation, origination and status changes"""

    def test_validate_valid(self, client):
        r = client.post("/loans/validate", json={
            "principal": "10000", "monthly_interest_rate": "4", "tenure_months": 3
        })
        assert r.status_code == 200
        assert r.json() == {"valid": True, "violations": []}

    def test_validate_invalid(self, client):
        r = client.post("/loans/validate", json={
            "principal": "0", "monthly_interest_rate": "4", "tenure_months": 24
        })
        assert r.status_code == 200
        data = r.json()
        assert data["valid"] is False
        assert data["violations"] == [
            "Principal amount must be greater than 0",
            "Tenure must be between 2 and 12 months"
        ]

    def test_originate(self, pending_loan):
        assert pending_loan["status"] == "pending_approval"
        assert pending_loan["outstanding_balance"] == "10000.00"
        assert pending_loan["created_by"] == "agent-1"
        assert len(pending_loan["schedule"]) == 3
        assert pending_loan["schedule"][0]["total_due"] == "3603.49"

    def test_originate_invalid(self, client):
        terms = dict(TERMS, monthly_interest_rate="9")
        r = client.post("/loans/originate", json={"terms": terms})
        assert r.status_code == 422
        detail = r.json()["detail"]
        assert detail["violations"] == ["Interest rate must be between 3% and 5% per month"]

    def test_approve(self, active_loan):
        assert active_loan["status"] == "active"
        assert active_loan["approved_by"] == "admin"
        assert active_loan["version"] == 1

    def test_approve_twice_conflicts(self, client, active_loan):
        r = client.post("/loans/approve", json={"loan": active_loan})
        assert r.status_code == 409

    def test_reject(self, client, pending_loan):
        r = client.post("/loans/reject", json={"loan": pending_loan, "reason": "Incomplete documents"})
        assert r.status_code == 200
        loan = r.json()["loan"]
        assert loan["status"] == "rejected"
        assert loan["rejection_reason"] == "Incomplete documents"

    def test_reject_without_reason(self, client, pending_loan):
        r = client.post("/loans/reject", json={"loan": pending_loan, "reason": ""})
        assert r.status_code == 400


class TestScheduleEndpoints:

    def test_preview_schedule(self, client):
        r = client.post("/schedules", json=TERMS)
        assert r.status_code == 200
        data = r.json()
        assert data["installment"] == "3603.49"
        assert data["payments"] == 3
        assert data["total_interest"] == "810.46"
        assert data["total_amount"] == "10810.46"
        assert data["schedule"][0]["interest_due"] == "400.00"
        assert data["schedule"][2]["remaining_balance_after"] == "0.00"

    def test_weekly_schedule(self, client):
        r = client.post("/schedules", json=dict(TERMS, payment_frequency="weekly"))
        assert r.status_code == 200
        assert r.json()["payments"] == 13

    def test_unknown_frequency(self, client):
        r = client.post("/schedules", json=dict(TERMS, payment_frequency="daily"))
        assert r.status_code == 400

    def test_malformed_amount(self, client):
        r = client.post("/schedules", json=dict(TERMS, principal="abc"))
        assert r.status_code == 400


class TestPenaltyEndpoints:

    def test_penalty(self, client):
        r = client.post("/penalties", json={
            "due_amount": "1000", "due_date": "2024-01-01", "as_of": "2024-01-11"
        })
        assert r.status_code == 200
        assert r.json() == {
            "days_overdue": 10,
            "penalty_per_day": "1.00",
            "total_penalty": "10.00",
            "is_past_due": True
        }

    def test_assess(self, client, active_loan):
        r = client.post("/penalties/assess", json={"loan": active_loan, "as_of": "2024-02-25"})
        assert r.status_code == 200
        loan = r.json()["loan"]
        assert loan["total_penalties_outstanding"] == "36.03"
        assert loan["schedule"][0]["penalty"] == "36.03"


class TestPaymentEndpoints:
    """Test payment allocation through the API"""

    def test_allocate(self, client, active_loan, earnings):
        r = client.post("/payments/allocate", json={
            "loan": active_loan,
            "amount": "3603.49",
            "payment_date": "2024-02-15",
            "earnings": earnings,
            "received_by": "agent-1"
        })
        assert r.status_code == 200
        data = r.json()
        assert data["applied_to_penalty"] == "0.00"
        assert data["applied_to_interest"] == "400.00"
        assert data["applied_to_principal"] == "3203.49"
        assert data["schedule_entry_number"] == 1
        assert data["commission"] == "40.00"
        assert data["earnings"]["collectible_earnings"] == "140.00"
        assert data["payment"]["payment_type"] == "regular"
        assert data["updated_loan"]["outstanding_balance"] == "6796.51"
        assert data["updated_loan"]["schedule"][0]["is_paid"] is True

    def test_allocate_without_earnings(self, client, active_loan):
        r = client.post("/payments/allocate", json={
            "loan": active_loan, "amount": "500", "payment_date": "2024-02-15"
        })
        assert r.status_code == 200
        data = r.json()
        assert data["commission"] == "0.00"
        assert data["earnings"] is None
        assert data["payment"]["payment_type"] == "partial"

    def test_pending_loan_conflicts(self, client, pending_loan):
        r = client.post("/payments/allocate", json={
            "loan": pending_loan, "amount": "500", "payment_date": "2024-02-15"
        })
        assert r.status_code == 409

    def test_zero_amount(self, client, active_loan):
        r = client.post("/payments/allocate", json={
            "loan": active_loan, "amount": "0", "payment_date": "2024-02-15"
        })
        assert r.status_code == 400

    @pytest.mark.parametrize("amount", ["1e3", "12abc", "1,5"])
    def test_malformed_amount_rejected(self, client, active_loan, amount):
        """Test that malformed amounts are refused instead of being recorded as another value"""
        r = client.post("/payments/allocate", json={
            "loan": active_loan, "amount": amount, "payment_date": "2024-02-15"
        })
        assert r.status_code == 400
        assert "Cannot convert" in r.json()["detail"]

    def test_missing_fields(self, client):
        r = client.post("/payments/allocate", json={"amount": "100"})
        assert r.status_code == 422


class TestCommissionEndpoints:

    def test_commission(self, client):
        r = client.post("/commissions", json={"interest_amount": "300", "commission_percentage": "5"})
        assert r.status_code == 200
        assert r.json() == {"commission": "15.00"}

    def test_commission_out_of_range(self, client):
        r = client.post("/commissions", json={"interest_amount": "300", "commission_percentage": "150"})
        assert r.status_code == 400

    def test_total_default_aggregation(self, client):
        r = client.post("/commissions/total", json={
            "interest_amounts": ["0.10", "0.10", "0.10"], "commission_percentage": "5"
        })
        assert r.status_code == 200
        assert r.json() == {"commission": "0.02", "aggregation": "sum_then_percentage"}

    def test_total_per_payment(self, client):
        r = client.post("/commissions/total", json={
            "interest_amounts": ["0.10", "0.10", "0.10"],
            "commission_percentage": "5",
            "aggregation": "percentage_then_sum"
        })
        assert r.status_code == 200
        assert r.json() == {"commission": "0.03", "aggregation": "percentage_then_sum"}

    def test_unknown_aggregation(self, client):
        r = client.post("/commissions/total", json={
            "interest_amounts": ["1"], "commission_percentage": "5", "aggregation": "average"
        })
        assert r.status_code == 400


class TestCashoutEndpoints:
    """Test cashout request, approval and rejection"""

    def test_cashout_workflow(self, client, earnings):
        r = client.post("/earnings/cashouts", json={
            "earnings": earnings, "amount": "25", "request_date": "2024-03-01"
        })
        assert r.status_code == 201
        cashout = r.json()["cashout"]
        assert cashout["status"] == "pending"
        assert cashout["amount"] == "25.00"

        r = client.post("/earnings/cashouts/approve", json={
            "earnings": earnings, "cashout": cashout, "approved_by": "admin"
        })
        assert r.status_code == 200
        data = r.json()
        assert data["cashout"]["status"] == "approved"
        assert data["earnings"]["collectible_earnings"] == "75.00"
        assert data["earnings"]["cashed_out_amount"] == "25.00"

        r = client.post("/earnings/cashouts/approve", json={
            "earnings": data["earnings"], "cashout": data["cashout"]
        })
        assert r.status_code == 409

    def test_cashout_exceeds_collectible(self, client, earnings):
        r = client.post("/earnings/cashouts", json={
            "earnings": earnings, "amount": "500", "request_date": "2024-03-01"
        })
        assert r.status_code == 400

    def test_cashout_below_minimum(self, client, earnings):
        r = client.post("/earnings/cashouts", json={
            "earnings": earnings, "amount": "5", "request_date": "2024-03-01"
        })
        assert r.status_code == 400

    def test_reject_cashout(self, client, earnings):
        r = client.post("/earnings/cashouts", json={
            "earnings": earnings, "amount": "25", "request_date": "2024-03-01"
        })
        cashout = r.json()["cashout"]

        r = client.post("/earnings/cashouts/reject", json={"cashout": cashout, "reason": "duplicate"})
        assert r.status_code == 200
        assert r.json()["cashout"]["status"] == "rejected"
        assert r.json()["cashout"]["rejection_reason"] == "duplicate"
