"""Date value type built straight from raw document scalars.

``Date`` owns its decoding: it is registered with the constructor-passthrough
strategy, so ``build_model("2015-12-12", Date)`` calls ``Date("2015-12-12")``.
Construction never raises. Input that cannot be read as an instant yields an
invalid ``Date`` whose string form is ``"Invalid Date"``; callers check
``is_valid`` (or the string form) instead of catching exceptions.

Accepted inputs:

* ISO-8601 strings: full timestamps, ``Z`` or numeric offsets, date-only,
  ``YYYY-MM`` and ``YYYY``. Naive values are read as UTC.
* ``int`` / ``float``: milliseconds since the Unix epoch.
* ``datetime`` (naive read as UTC), ``date`` (midnight UTC), another ``Date``.
* no argument: the current time.

Instants are held in UTC with millisecond precision.
"""
from __future__ import annotations

import math
import re
from datetime import UTC, date, datetime, timedelta
from typing import Any

INVALID_DATE = "Invalid Date"

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_YEAR_MONTH_RE = re.compile(r"^(\d{4})(?:-(\d{2}))?$")
_NOW = object()


def _truncate_ms(dt: datetime) -> datetime:
    return dt.replace(microsecond=dt.microsecond // 1000 * 1000)


def _parse_iso(raw: str) -> datetime | None:
    value = raw.strip()
    if not value:
        return None
    m = _YEAR_MONTH_RE.match(value)
    if m:
        try:
            return datetime(int(m.group(1)), int(m.group(2) or 1), 1, tzinfo=UTC)
        except ValueError:
            return None
    value = value.replace("Z", "+00:00")
    try:
        dt = datetime.fromisoformat(value)
        if dt.tzinfo is None:
            return dt.replace(tzinfo=UTC)
        return dt.astimezone(UTC)
    except (ValueError, OverflowError):
        return None


def _from_epoch_ms(ms: float) -> datetime | None:
    if isinstance(ms, float) and not math.isfinite(ms):
        return None
    try:
        return _EPOCH + timedelta(milliseconds=int(ms))
    except OverflowError:
        return None


def _coerce(value: Any) -> datetime | None:
    if value is _NOW:
        dt: datetime | None = datetime.now(UTC)
    elif isinstance(value, Date):
        return value._value
    elif isinstance(value, datetime):
        dt = value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day, tzinfo=UTC)
    elif isinstance(value, str):
        dt = _parse_iso(value)
    elif isinstance(value, (int, float)):
        dt = _from_epoch_ms(value)
    else:
        dt = None
    return _truncate_ms(dt) if dt is not None else None


class Date:
    """A UTC instant, or the invalid-date sentinel."""

    __slots__ = ("_value",)

    def __init__(self, value: Any = _NOW) -> None:
        self._value: datetime | None = _coerce(value)

    @property
    def is_valid(self) -> bool:
        return self._value is not None

    @property
    def year(self) -> int | None:
        return self._value.year if self._value is not None else None

    @property
    def month(self) -> int | None:
        return self._value.month if self._value is not None else None

    @property
    def day(self) -> int | None:
        return self._value.day if self._value is not None else None

    def to_datetime(self) -> datetime | None:
        """Aware UTC ``datetime``, or ``None`` for an invalid date."""
        return self._value

    def timestamp_ms(self) -> int | None:
        """Milliseconds since the Unix epoch, or ``None`` for an invalid date."""
        if self._value is None:
            return None
        return (self._value - _EPOCH) // timedelta(milliseconds=1)

    def __str__(self) -> str:
        if self._value is None:
            return INVALID_DATE
        return self._value.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def __repr__(self) -> str:
        return f"Date({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Date):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)
