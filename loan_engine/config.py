"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from decimal import Decimal
from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class CommissionAggregation(str, Enum):
    """How commission is totalled over several payments"""
    SUM_THEN_PERCENTAGE = "sum_then_percentage"      # Web: sum interest, apply rate once
    PERCENTAGE_THEN_SUM = "percentage_then_sum"      # Per-payment commission, then sum


class LoanEngineConfig(BaseSettings):
    """Loanstar loan engine configuration"""

    model_config = SettingsConfigDict(
        env_prefix="LOANSTAR_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Loan business rules (monthly interest rate in percent)
    min_interest_rate: Decimal = Decimal('3')
    max_interest_rate: Decimal = Decimal('5')
    min_tenure_months: int = 2
    max_tenure_months: int = 12

    # Schedule configuration
    weeks_per_month: Decimal = Decimal('4.33')  # Mobile app used 4
    weekly_period_days: int = 7
    bi_monthly_period_days: int = 15

    # Penalty configuration
    penalty_rate_monthly: Decimal = Decimal('0.03')  # 3% per month
    penalty_days_in_month: int = 30

    # Commission and earnings
    commission_aggregation: CommissionAggregation = CommissionAggregation.SUM_THEN_PERCENTAGE
    min_cashout_amount: Decimal = Decimal('10')

    # Payment allocation
    rounding_tolerance: Decimal = Decimal('0.01')
    enforce_active_loan_for_payments: bool = True
    exclude_penalty_payments_from_schedule: bool = False  # Settle installments from total_paid minus penalties paid

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090


# Global configuration instance
config = LoanEngineConfig()


def get_config() -> LoanEngineConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LoanEngineConfig:
    """Reload configuration from environment"""
    global config
    config = LoanEngineConfig()
    return config
