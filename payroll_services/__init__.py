"""
payroll_services -- Package init and public API.

Responsibility:
    Fail-soft reference-data feeds (exchange rates, public holidays).
    This is the **only** layer that performs network I/O.

Architecture position:
    Services -- sits above engines and config.

    Dependency direction:
        payroll_services/ -> payroll_config/, payroll_kernel/  (allowed)
        payroll_engines/  -> payroll_services/                 (FORBIDDEN)
        payroll_kernel/   -> payroll_services/                 (FORBIDDEN)
"""

from payroll_kernel.logging_config import get_logger

logger = get_logger("services")

from payroll_services.reference_feeds import (
    ExchangeRateFeed,
    HolidayFetchResult,
    PublicHolidayFeed,
    RateFetchResult,
)

__all__ = [
    "ExchangeRateFeed",
    "HolidayFetchResult",
    "PublicHolidayFeed",
    "RateFetchResult",
]
