"""
Staff Pay Configuration Schema.

Defines the structure and sensible defaults for payroll computation
settings: entitlement rules, rate multipliers, salary normalisation
factors, the reporting currency and the fallback exchange-rate table.
Actual values may be loaded from YAML at runtime
(see ``payroll_config.loader``).
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Self

from payroll_kernel.domain.currency import CurrencyRegistry
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.staff_pay.config")

DEFAULT_OVERTIME_REQUEST_TYPES = frozenset(
    {"overtime", "overtime_standard", "overtime_double_up"}
)

# 1 unit of currency -> GBP, used when the rate feed is unreachable
DEFAULT_FALLBACK_RATES: dict[str, Decimal] = {
    "GBP": Decimal("1"),
    "EUR": Decimal("0.85"),
    "USD": Decimal("0.79"),
    "INR": Decimal("0.0095"),
    "AED": Decimal("0.21"),
    "AUD": Decimal("0.52"),
    "CAD": Decimal("0.58"),
    "PHP": Decimal("0.014"),
    "ZAR": Decimal("0.044"),
    "NGN": Decimal("0.00052"),
}

_DECIMAL_FIELDS = (
    "default_holiday_allowance",
    "increased_holiday_allowance",
    "allowance_step_years",
    "working_days_per_month",
    "overtime_multiplier",
    "holiday_worked_multiplier",
    "months_per_year",
    "weekly_to_monthly_factor",
    "biweekly_to_monthly_factor",
)


@dataclass
class PayrollConfig:
    """
    Configuration schema for the staff payroll engine.

    Override at instantiation with company-specific values:

        config = PayrollConfig(
            reporting_currency="GBP",
            holiday_worked_multiplier=Decimal("0.5"),
        )
    """

    reporting_currency: str = "GBP"

    # Holiday entitlement
    default_holiday_allowance: Decimal = Decimal("15")
    increased_holiday_allowance: Decimal = Decimal("18")
    allowance_step_years: Decimal = Decimal("1")
    holiday_year_start_month: int = 6
    unused_holiday_payout_month: int = 6

    # Daily rate and multipliers
    working_days_per_month: Decimal = Decimal("20")
    overtime_multiplier: Decimal = Decimal("1.5")
    holiday_worked_multiplier: Decimal = Decimal("0.5")

    # Salary normalisation to a per-calendar-month figure
    months_per_year: Decimal = Decimal("12")
    weekly_to_monthly_factor: Decimal = Decimal("4.33")
    biweekly_to_monthly_factor: Decimal = Decimal("2.17")

    overtime_request_types: frozenset[str] = DEFAULT_OVERTIME_REQUEST_TYPES
    default_holiday_name: str = "Public Holiday"
    fallback_exchange_rates: dict[str, Decimal] = field(
        default_factory=lambda: dict(DEFAULT_FALLBACK_RATES)
    )

    def __post_init__(self):
        self.reporting_currency = CurrencyRegistry.normalize(self.reporting_currency)

        if self.default_holiday_allowance < 0:
            raise ValueError("default_holiday_allowance cannot be negative")
        if self.increased_holiday_allowance < self.default_holiday_allowance:
            raise ValueError(
                "increased_holiday_allowance cannot be below default_holiday_allowance"
            )
        if self.allowance_step_years <= 0:
            raise ValueError("allowance_step_years must be positive")

        for name in ("holiday_year_start_month", "unused_holiday_payout_month"):
            month = getattr(self, name)
            if not 1 <= month <= 12:
                raise ValueError(f"{name} must be between 1 and 12, got {month}")

        if self.working_days_per_month <= 0:
            raise ValueError("working_days_per_month must be positive")
        if self.overtime_multiplier < 0:
            raise ValueError("overtime_multiplier cannot be negative")
        if self.holiday_worked_multiplier < 0:
            raise ValueError("holiday_worked_multiplier cannot be negative")
        if self.months_per_year <= 0:
            raise ValueError("months_per_year must be positive")
        if self.weekly_to_monthly_factor <= 0 or self.biweekly_to_monthly_factor <= 0:
            raise ValueError("salary normalisation factors must be positive")

        rates: dict[str, Decimal] = {}
        for code, rate in self.fallback_exchange_rates.items():
            if rate <= 0:
                raise ValueError(f"fallback exchange rate for {code} must be positive")
            rates[CurrencyRegistry.normalize(code)] = rate
        self.fallback_exchange_rates = rates
        self.overtime_request_types = frozenset(self.overtime_request_types)

        logger.debug(
            "payroll_config_initialized",
            extra={
                "reporting_currency": self.reporting_currency,
                "working_days_per_month": str(self.working_days_per_month),
                "overtime_multiplier": str(self.overtime_multiplier),
                "holiday_worked_multiplier": str(self.holiday_worked_multiplier),
                "holiday_year_start_month": self.holiday_year_start_month,
                "fallback_currencies": sorted(self.fallback_exchange_rates),
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the standard defaults."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from a dictionary (e.g. parsed YAML).

        Numbers are converted through ``str`` so YAML floats such as 4.33
        become exact Decimals.
        """
        logger.info(
            "payroll_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        values = dict(data)
        for name in _DECIMAL_FIELDS:
            if name in values:
                values[name] = Decimal(str(values[name]))
        if "fallback_exchange_rates" in values:
            values["fallback_exchange_rates"] = {
                str(code): Decimal(str(rate))
                for code, rate in values["fallback_exchange_rates"].items()
            }
        if "overtime_request_types" in values:
            values["overtime_request_types"] = frozenset(values["overtime_request_types"])
        return cls(**values)
