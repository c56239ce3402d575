"""Currency -- payroll currency registry, display symbols and precision rounding."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import ClassVar

from payroll_kernel.exceptions import InvalidCurrencyError


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single currency used on payslips."""

    code: str
    decimal_places: int
    name: str
    symbol: str

    @property
    def quantum(self) -> Decimal:
        """Smallest representable unit, for ``Decimal.quantize()``."""
        return Decimal(1).scaleb(-self.decimal_places)


class CurrencyRegistry:
    """Registry of currencies staff are paid in, with display symbols."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling", "£"),
        "USD": CurrencyInfo("USD", 2, "US Dollar", "$"),
        "EUR": CurrencyInfo("EUR", 2, "Euro", "€"),
        "INR": CurrencyInfo("INR", 2, "Indian Rupee", "₹"),
        "AED": CurrencyInfo("AED", 2, "UAE Dirham", "د.إ"),
        "AUD": CurrencyInfo("AUD", 2, "Australian Dollar", "A$"),
        "CAD": CurrencyInfo("CAD", 2, "Canadian Dollar", "C$"),
        "PHP": CurrencyInfo("PHP", 2, "Philippine Peso", "₱"),
        "ZAR": CurrencyInfo("ZAR", 2, "South African Rand", "R"),
        "NGN": CurrencyInfo("NGN", 2, "Nigerian Naira", "₦"),
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen", "¥"),
        "CHF": CurrencyInfo("CHF", 2, "Swiss Franc", "CHF "),
        "NZD": CurrencyInfo("NZD", 2, "New Zealand Dollar", "NZ$"),
        "KES": CurrencyInfo("KES", 2, "Kenyan Shilling", "KSh"),
        "GHS": CurrencyInfo("GHS", 2, "Ghanaian Cedi", "GH₵"),
    }

    # Unknown currencies still round like the common two-decimal case
    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @staticmethod
    def _key(code: object) -> str:
        return code.upper().strip() if isinstance(code, str) else ""

    @classmethod
    def is_known(cls, code: str) -> bool:
        return cls._key(code) in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        return cls._CURRENCIES.get(cls._key(code))

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        info = cls.get_info(code)
        return info.decimal_places if info else cls.DEFAULT_DECIMAL_PLACES

    @classmethod
    def symbol_for(cls, code: str) -> str:
        """Display symbol, or an empty string for unregistered currencies."""
        info = cls.get_info(code)
        return info.symbol if info else ""

    @classmethod
    def quantize(cls, amount: Decimal, code: str) -> Decimal:
        """Round half-up to the currency's precision."""
        quantum = Decimal(1).scaleb(-cls.get_decimal_places(code))
        return amount.quantize(quantum, rounding=ROUND_HALF_UP)

    @classmethod
    def normalize(cls, code: str) -> str:
        """Validate the shape of a currency code and upper-case it.

        Codes outside the registry are accepted: a currency with no known
        rate simply converts at 1.
        """
        key = cls._key(code)
        if len(key) != 3 or not key.isalpha():
            raise InvalidCurrencyError(code)
        return key

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        """Get all registered currency codes."""
        return frozenset(cls._CURRENCIES)


def format_amount(amount: Decimal, currency: str) -> str:
    """Render an amount with its currency symbol and thousands separators."""
    quantized = CurrencyRegistry.quantize(amount, currency)
    places = CurrencyRegistry.get_decimal_places(currency)
    sign = "-" if quantized < 0 else ""
    return f"{sign}{CurrencyRegistry.symbol_for(currency)}{abs(quantized):,.{places}f}"
