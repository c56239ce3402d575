"""
payroll_services.reference_feeds -- Exchange-rate and public-holiday feeds.

Responsibility:
    Fetch the two pieces of external reference data payroll depends on and
    hand them to the engines as plain values:

    * ``ExchangeRateFeed`` -- EUR-based rates from Frankfurter, re-based to
      "reporting currency per unit" for every currency it knows, layered
      over the shipped fallback table.
    * ``PublicHolidayFeed`` -- public holidays from Nager.Date, merged with
      the shipped estimated (lunar-calendar) holidays.

Architecture position:
    Services -- the only layer that performs network I/O.  Engines receive
    the results through ``PayrollSnapshot``; they never call a feed.

Invariants enforced:
    - Fail soft: ``fetch`` never raises.  Any transport, HTTP or payload
      error falls back to the last good result, then to the shipped table.
    - Rates are built from ``Decimal(str(value))`` -- never float maths.
    - Holiday lists are sorted by date with one entry per date.

Failure modes:
    - ``ReferenceFeedUnavailableError`` is raised internally for a failed
      fetch and logged at WARNING before the fallback is returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, DivisionByZero, InvalidOperation
from typing import Any

import requests

from payroll_config.loader import FeedSettings, ReferenceData
from payroll_kernel.domain.periods import parse_iso_date
from payroll_kernel.exceptions import InvalidDateError, ReferenceFeedUnavailableError
from payroll_kernel.logging_config import get_logger
from payroll_modules.staff_pay.models import PublicHoliday

logger = get_logger("services.reference_feeds")

SOURCE_LIVE = "live"
SOURCE_LAST_KNOWN = "last_known"
SOURCE_FALLBACK = "fallback"

_FRANKFURTER_BASE = "EUR"


@dataclass(frozen=True)
class RateFetchResult:
    rates: dict[str, Decimal]
    source: str
    as_of: date | None = None


@dataclass(frozen=True)
class HolidayFetchResult:
    year: int
    holidays: tuple[PublicHoliday, ...]
    source: str


def _get_json(session: Any, url: str, timeout: float, feed: str) -> Any:
    http = session if session is not None else requests
    try:
        resp = http.get(url, timeout=timeout)
        resp.raise_for_status()
        return resp.json()
    except requests.exceptions.RequestException as e:
        raise ReferenceFeedUnavailableError(feed, str(e)) from e
    except ValueError as e:
        raise ReferenceFeedUnavailableError(feed, f"invalid JSON: {e}") from e


def rebase_rates(
    base_rates: dict[str, Any],
    reporting_currency: str,
    base_currency: str = _FRANKFURTER_BASE,
) -> dict[str, Decimal]:
    """Turn "units per 1 base" into "reporting currency per 1 unit".

    Raises:
        ReferenceFeedUnavailableError: when the payload lacks the
            reporting currency or holds a non-positive rate.
    """
    per_base: dict[str, Decimal] = {base_currency: Decimal("1")}
    for code, value in base_rates.items():
        try:
            rate = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ReferenceFeedUnavailableError(
                "exchange_rates", f"non-numeric rate for {code}",
            ) from None
        if not rate.is_finite() or rate <= 0:
            raise ReferenceFeedUnavailableError(
                "exchange_rates", f"non-positive rate for {code}",
            )
        per_base[str(code).upper()] = rate

    if reporting_currency not in per_base:
        raise ReferenceFeedUnavailableError(
            "exchange_rates", f"no rate for reporting currency {reporting_currency}",
        )
    reporting_per_base = per_base[reporting_currency]

    try:
        rebased = {code: reporting_per_base / rate for code, rate in per_base.items()}
    except DivisionByZero:
        raise ReferenceFeedUnavailableError("exchange_rates", "zero rate") from None
    rebased[reporting_currency] = Decimal("1")
    return rebased


class ExchangeRateFeed:
    """
    Live exchange rates with last-known and shipped fallbacks.

    Contract:
        ``fetch()`` always returns a full table: live rates overlay the
        shipped fallback table so currencies the feed does not quote
        (e.g. NGN, AED) keep a usable rate.
    """

    def __init__(
        self,
        reference: ReferenceData,
        reporting_currency: str = "GBP",
        session: Any = None,
    ):
        self._settings: FeedSettings = reference.feeds
        self._fallback = dict(reference.fallback_exchange_rates)
        self._reporting_currency = reporting_currency
        self._session = session
        self._last_known: RateFetchResult | None = None

    def fetch(self) -> RateFetchResult:
        try:
            result = self._fetch_live()
        except ReferenceFeedUnavailableError as e:
            logger.warning(
                "exchange_rate_feed_unavailable",
                extra={"reason": e.reason, "has_last_known": self._last_known is not None},
            )
            if self._last_known is not None:
                return RateFetchResult(
                    rates=dict(self._last_known.rates),
                    source=SOURCE_LAST_KNOWN,
                    as_of=self._last_known.as_of,
                )
            return RateFetchResult(rates=dict(self._fallback), source=SOURCE_FALLBACK)

        self._last_known = result
        return result

    def _fetch_live(self) -> RateFetchResult:
        payload = _get_json(
            self._session,
            self._settings.exchange_rate_url,
            self._settings.timeout_seconds,
            "exchange_rates",
        )
        if not isinstance(payload, dict) or not isinstance(payload.get("rates"), dict):
            raise ReferenceFeedUnavailableError("exchange_rates", "payload has no rates")

        base = str(payload.get("base") or _FRANKFURTER_BASE).upper()
        live = rebase_rates(payload["rates"], self._reporting_currency, base)
        as_of = None
        if payload.get("date"):
            try:
                as_of = parse_iso_date(payload["date"], "date")
            except InvalidDateError:
                as_of = None

        rates = {**self._fallback, **live}
        logger.info(
            "exchange_rates_fetched",
            extra={"live_count": len(live), "total_count": len(rates), "as_of": as_of},
        )
        return RateFetchResult(rates=rates, source=SOURCE_LIVE, as_of=as_of)


def merge_holidays(*groups: tuple[PublicHoliday, ...] | list[PublicHoliday]) -> tuple[PublicHoliday, ...]:
    """Sorted by date; the first group to name a date wins."""
    by_date: dict[date, PublicHoliday] = {}
    for group in groups:
        for holiday in group:
            by_date.setdefault(holiday.holiday_date, holiday)
    return tuple(by_date[d] for d in sorted(by_date))


class PublicHolidayFeed:
    """Public holidays per year, with estimated lunar holidays merged in."""

    def __init__(self, reference: ReferenceData, session: Any = None):
        self._reference = reference
        self._settings: FeedSettings = reference.feeds
        self._session = session

    def fetch(self, year: int) -> HolidayFetchResult:
        estimated = self._reference.estimated_holidays_for(year)
        try:
            live = self._fetch_live(year)
        except ReferenceFeedUnavailableError as e:
            logger.warning(
                "public_holiday_feed_unavailable",
                extra={"year": year, "reason": e.reason},
            )
            fallback = self._reference.fallback_holidays_for(year)
            return HolidayFetchResult(
                year=year,
                holidays=merge_holidays(fallback, estimated),
                source=SOURCE_FALLBACK,
            )

        holidays = merge_holidays(live, estimated)
        logger.info(
            "public_holidays_fetched",
            extra={"year": year, "count": len(holidays)},
        )
        return HolidayFetchResult(year=year, holidays=holidays, source=SOURCE_LIVE)

    def _fetch_live(self, year: int) -> tuple[PublicHoliday, ...]:
        url = self._settings.public_holiday_url.format(
            year=year, country=self._settings.country_code,
        )
        payload = _get_json(self._session, url, self._settings.timeout_seconds, "public_holidays")
        if not isinstance(payload, list):
            raise ReferenceFeedUnavailableError("public_holidays", "payload is not a list")
        try:
            return tuple(
                PublicHoliday(
                    holiday_date=parse_iso_date(item.get("date"), "date"),
                    name=str(item.get("name") or item.get("localName") or ""),
                    is_estimated=False,
                )
                for item in payload
            )
        except (InvalidDateError, AttributeError) as e:
            raise ReferenceFeedUnavailableError("public_holidays", str(e)) from e
