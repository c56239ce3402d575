"""
payroll_config -- public entrypoint for payroll configuration.

Responsibility:
    Provides ``get_payroll_config()``, which loads the YAML file (the
    shipped defaults unless a path is given) into a validated
    ``PayrollConfig`` and the ``ReferenceData`` fallback tables.

Architecture position:
    Configuration -- sits above ``payroll_kernel`` and the staff_pay data
    model.  The kernel and engines MUST NEVER import from
    ``payroll_config``; callers pass the resulting ``PayrollConfig`` in.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ValueError`` -- a value fails ``PayrollConfig`` validation.

Audit relevance:
    Every successful load emits a ``PAYROLL_CONFIG_TRACE`` log entry with
    the source path and checksum, tying computed payslips to the exact
    configuration that produced them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from payroll_config.loader import (
    DEFAULT_CONFIG_PATH,
    FeedSettings,
    LoadedPayrollConfig,
    ReferenceData,
    compute_checksum,
    load_payroll_config,
)

_logger = logging.getLogger("payroll_kernel.config")


def get_payroll_config(path: Path | str | None = None) -> LoadedPayrollConfig:
    """Load payroll configuration and emit the config trace."""
    loaded = load_payroll_config(path)
    _logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "source": loaded.source,
            "checksum": loaded.checksum,
            "reporting_currency": loaded.config.reporting_currency,
        },
    )
    return loaded


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "FeedSettings",
    "LoadedPayrollConfig",
    "ReferenceData",
    "compute_checksum",
    "get_payroll_config",
    "load_payroll_config",
]
