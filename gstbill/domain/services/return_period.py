# gstbill/domain/services/return_period.py
"""Helpers for ``YYYYMM`` return periods."""

from __future__ import annotations

import re
from calendar import monthrange
from datetime import date

from gstbill.domain.exceptions import ValidationError

_PERIOD_RE = re.compile(r"^\d{4}(0[1-9]|1[0-2])$")


def parse_period(period: str) -> tuple[int, int]:
    """Return (year, month) for a ``YYYYMM`` string or raise ValidationError."""
    if not isinstance(period, str) or not _PERIOD_RE.match(period):
        raise ValidationError(
            f"Invalid return period {period!r}; expected YYYYMM",
            {"period": period},
        )
    return int(period[:4]), int(period[4:])


def period_date_range(period: str) -> tuple[date, date]:
    """Return (first_day, last_day) for a YYYYMM period."""
    year, month = parse_period(period)
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def period_for_date(day: date) -> str:
    return f"{day.year:04d}{day.month:02d}"


def financial_year(period: str) -> str:
    """Indian financial year (April to March) for a period.

      - 202501 → 2024-2025
      - 202504 → 2025-2026
    """
    year, month = parse_period(period)
    start = year if month >= 4 else year - 1
    return f"{start}-{start + 1}"
