"""
Currency Normalizer (``payroll_engines.currency_normalizer``).

Responsibility
--------------
Convert amounts in a staff member's pay currency into the reporting
currency.  A rate is "units of reporting currency per unit of the
source currency".

Lookup order per currency is manual override, then fetched rate, then
``1`` (no conversion).  Manual overrides shadow fetched values and
survive a rate refresh until explicitly cleared.

The table is immutable: every mutation returns a new table, so the
aggregator can be re-run against a snapshot without surprises.

Architecture position
---------------------
**Engines layer** -- pure.  Fetching rates is the job of
``payroll_services.reference_feeds``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation

from payroll_kernel.domain.currency import CurrencyRegistry, format_amount
from payroll_kernel.exceptions import InvalidExchangeRateError
from payroll_kernel.logging_config import get_logger
from payroll_modules.staff_pay.config import PayrollConfig

logger = get_logger("engines.currency_normalizer")

__all__ = ["ExchangeRateTable", "format_amount", "parse_rate"]

_ONE = Decimal("1")


def parse_rate(currency: str, raw: object) -> Decimal:
    """Parse a positive rate.

    Raises:
        InvalidExchangeRateError: for non-numeric, zero or negative input.
    """
    text = str(raw).strip()
    try:
        rate = Decimal(text)
    except (InvalidOperation, ValueError):
        raise InvalidExchangeRateError(currency, text, "not a number") from None
    if not rate.is_finite():
        raise InvalidExchangeRateError(currency, text, "not a number")
    if rate <= 0:
        raise InvalidExchangeRateError(currency, text, "must be positive")
    return rate


def _normalized_rates(rates: Mapping[str, Decimal]) -> dict[str, Decimal]:
    return {CurrencyRegistry.normalize(code): Decimal(rate) for code, rate in rates.items()}


@dataclass(frozen=True)
class ExchangeRateTable:
    """Fetched rates plus per-currency manual overrides."""

    reporting_currency: str = "GBP"
    fetched_rates: dict[str, Decimal] = field(default_factory=dict)
    manual_rates: dict[str, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "reporting_currency", CurrencyRegistry.normalize(self.reporting_currency),
        )
        object.__setattr__(self, "fetched_rates", _normalized_rates(self.fetched_rates))
        object.__setattr__(self, "manual_rates", _normalized_rates(self.manual_rates))

    @classmethod
    def from_defaults(cls, config: PayrollConfig | None = None) -> ExchangeRateTable:
        """Table seeded with the shipped fallback rates."""
        config = config or PayrollConfig.with_defaults()
        return cls(
            reporting_currency=config.reporting_currency,
            fetched_rates=dict(config.fallback_exchange_rates),
        )

    def rate_for(self, currency: str) -> Decimal:
        code = CurrencyRegistry.normalize(currency)
        if code in self.manual_rates:
            return self.manual_rates[code]
        return self.fetched_rates.get(code, _ONE)

    def has_override(self, currency: str) -> bool:
        return CurrencyRegistry.normalize(currency) in self.manual_rates

    def convert(self, amount: Decimal, currency: str) -> Decimal:
        """Amount expressed in the reporting currency (unrounded)."""
        return amount * self.rate_for(currency)

    def with_manual_rate(self, currency: str, rate: Decimal) -> ExchangeRateTable:
        code = CurrencyRegistry.normalize(currency)
        value = parse_rate(code, rate)
        logger.info(
            "exchange_rate_override_set",
            extra={"currency": code, "rate": str(value)},
        )
        return replace(self, manual_rates={**self.manual_rates, code: value})

    def without_manual_rate(self, currency: str) -> ExchangeRateTable:
        code = CurrencyRegistry.normalize(currency)
        if code not in self.manual_rates:
            return self
        remaining = {k: v for k, v in self.manual_rates.items() if k != code}
        logger.info("exchange_rate_override_cleared", extra={"currency": code})
        return replace(self, manual_rates=remaining)

    def apply_manual_input(self, currency: str, raw_text: str | None) -> ExchangeRateTable:
        """Apply what a user typed into a rate field.

        Empty text clears the override; anything else must parse as a
        positive number.
        """
        if raw_text is None or not str(raw_text).strip():
            return self.without_manual_rate(currency)
        return self.with_manual_rate(currency, raw_text)

    def with_fetched_rates(self, rates: Mapping[str, Decimal]) -> ExchangeRateTable:
        """Replace fetched rates; manual overrides are kept."""
        return replace(self, fetched_rates=dict(rates))
