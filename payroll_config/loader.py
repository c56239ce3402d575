"""
Configuration Loader (``payroll_config.loader``).

Responsibility
--------------
Loads the payroll YAML file and parses it into a validated
``PayrollConfig`` plus the ``ReferenceData`` the feeds fall back on
(exchange rates, public holidays, estimated lunar holidays, feed URLs).

Architecture position
---------------------
**Config layer** -- file I/O only.  Consumed by ``payroll_config``'s
``get_payroll_config()`` and by ``payroll_services.reference_feeds``.
The kernel and engines never import from here.

Invariants enforced
-------------------
* Numbers become ``Decimal`` through ``str`` -- never via ``float``.
* ``compute_checksum`` is a deterministic SHA-256 of the parsed file.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid values  -> ``ValueError`` / ``InvalidDateError`` propagate.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from payroll_kernel.domain.periods import parse_iso_date
from payroll_kernel.logging_config import get_logger
from payroll_modules.staff_pay.config import PayrollConfig
from payroll_modules.staff_pay.models import PublicHoliday

logger = get_logger("config.loader")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "data" / "defaults.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


@dataclass(frozen=True)
class FeedSettings:
    """Where the reference feeds read from."""

    exchange_rate_url: str = "https://api.frankfurter.app/latest"
    public_holiday_url: str = "https://date.nager.at/api/v3/PublicHolidays/{year}/{country}"
    country_code: str = "NG"
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class ReferenceData:
    """Shipped fallback tables for when the reference feeds fail."""

    fallback_exchange_rates: dict[str, Decimal] = field(default_factory=dict)
    fallback_public_holidays: dict[int, tuple[PublicHoliday, ...]] = field(default_factory=dict)
    estimated_public_holidays: dict[int, tuple[PublicHoliday, ...]] = field(default_factory=dict)
    feeds: FeedSettings = field(default_factory=FeedSettings)

    def fallback_holidays_for(self, year: int) -> tuple[PublicHoliday, ...]:
        """The shipped list for ``year``, or the earliest shipped year's."""
        if year in self.fallback_public_holidays:
            return self.fallback_public_holidays[year]
        if not self.fallback_public_holidays:
            return ()
        return self.fallback_public_holidays[min(self.fallback_public_holidays)]

    def estimated_holidays_for(self, year: int) -> tuple[PublicHoliday, ...]:
        return self.estimated_public_holidays.get(year, ())


@dataclass(frozen=True)
class LoadedPayrollConfig:
    """Everything parsed from one YAML file, with its identity."""

    config: PayrollConfig
    reference: ReferenceData
    source: str
    checksum: str


def parse_holiday(data: dict[str, Any], estimated: bool = False) -> PublicHoliday:
    return PublicHoliday(
        holiday_date=parse_iso_date(data["date"], "date"),
        name=str(data.get("name") or ""),
        is_estimated=bool(data.get("is_estimated", estimated)),
    )


def parse_holiday_calendar(
    data: dict[Any, list[dict[str, Any]]] | None,
    estimated: bool = False,
) -> dict[int, tuple[PublicHoliday, ...]]:
    """Year -> holidays sorted by date."""
    calendar: dict[int, tuple[PublicHoliday, ...]] = {}
    for year, entries in (data or {}).items():
        holidays = [parse_holiday(entry, estimated) for entry in entries or ()]
        calendar[int(year)] = tuple(sorted(holidays, key=lambda h: h.holiday_date))
    return calendar


def parse_rates(data: dict[str, Any] | None) -> dict[str, Decimal]:
    return {str(code): Decimal(str(rate)) for code, rate in (data or {}).items()}


def parse_feeds(data: dict[str, Any] | None) -> FeedSettings:
    data = data or {}
    defaults = FeedSettings()
    return FeedSettings(
        exchange_rate_url=str(data.get("exchange_rate_url", defaults.exchange_rate_url)),
        public_holiday_url=str(data.get("public_holiday_url", defaults.public_holiday_url)),
        country_code=str(data.get("country_code", defaults.country_code)),
        timeout_seconds=float(data.get("timeout_seconds", defaults.timeout_seconds)),
    )


def parse_reference_data(data: dict[str, Any]) -> ReferenceData:
    holidays = data.get("public_holidays") or {}
    return ReferenceData(
        fallback_exchange_rates=parse_rates((data.get("exchange_rates") or {}).get("fallback")),
        fallback_public_holidays=parse_holiday_calendar(holidays.get("fallback")),
        estimated_public_holidays=parse_holiday_calendar(holidays.get("estimated"), estimated=True),
        feeds=parse_feeds(data.get("feeds")),
    )


def parse_payroll_config(data: dict[str, Any], reference: ReferenceData) -> PayrollConfig:
    """Build ``PayrollConfig`` from the ``payroll`` section.

    The fallback exchange-rate table doubles as the config's default rates.
    """
    values = dict(data.get("payroll") or {})
    if reference.fallback_exchange_rates and "fallback_exchange_rates" not in values:
        values["fallback_exchange_rates"] = dict(reference.fallback_exchange_rates)
    return PayrollConfig.from_dict(values)


def load_payroll_config(path: Path | str | None = None) -> LoadedPayrollConfig:
    """
    Load and validate a payroll configuration file.

    Args:
        path: YAML file; defaults to the shipped ``data/defaults.yaml``.
    """
    source = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    data = load_yaml_file(source)
    reference = parse_reference_data(data)
    config = parse_payroll_config(data, reference)
    checksum = compute_checksum(data)

    logger.info(
        "payroll_config_loaded",
        extra={
            "source": str(source),
            "checksum": checksum[:16],
            "fallback_rate_count": len(reference.fallback_exchange_rates),
            "fallback_holiday_years": sorted(reference.fallback_public_holidays),
        },
    )
    return LoadedPayrollConfig(
        config=config, reference=reference, source=str(source), checksum=checksum,
    )
