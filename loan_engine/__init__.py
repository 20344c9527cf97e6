"""
Loanstar Loan Engine

The financial core of the Loanstar loan-servicing system: amortization
schedules, overdue penalties, agent commissions and payment allocation,
all computed with Decimal precision and returned as new immutable records.
"""

__version__ = "1.0.0"
