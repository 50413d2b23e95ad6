"""Tournament calendar: scoring months, month keys and date parsing."""

from __future__ import annotations

import calendar
import datetime
import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping
from zoneinfo import ZoneInfo

from .constants import (
    DEFAULT_LATE_SCORING_MONTHS,
    DEFAULT_TIMEZONE,
    DEFAULT_TOURNAMENT_MONTHS,
)


@dataclass(frozen=True)
class ScoringMonth:
    """A calendar month that is scored independently for bonus purposes."""

    key: str
    label: str
    end: datetime.datetime

    def has_ended(self, now: datetime.date) -> bool:
        """Return True once ``now`` is past the month's closing instant.

        A naive datetime is read in the month's timezone; a plain date counts
        as past the month once it falls after the closing day.
        """
        if not isinstance(now, datetime.datetime):
            return now > self.end.date()
        return ensure_aware(now, self.end.tzinfo) > self.end


def parse_match_date(value: Any) -> datetime.date | None:
    """Parse a stored match date into a ``date``."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def month_key(value: Any) -> str | None:
    """Return the ``YYYY-MM`` key of a date-like value."""
    parsed = parse_match_date(value)
    if parsed is None:
        return None
    return f"{parsed.year:04d}-{parsed.month:02d}"


def month_end(key: str, tz: datetime.tzinfo) -> datetime.datetime:
    """Return the last second of the month ``key`` in ``tz``."""
    year, month = (int(part) for part in key.split("-"))
    last_day = calendar.monthrange(year, month)[1]
    return datetime.datetime(year, month, last_day, 23, 59, 59, tzinfo=tz)


def ensure_aware(
    moment: datetime.datetime, tz: datetime.tzinfo
) -> datetime.datetime:
    """Attach ``tz`` to a naive datetime."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment


def _load_json_setting(raw: Any, default: Any) -> Any:
    if raw is None or raw == "":
        return default
    if isinstance(raw, str):
        return json.loads(raw)
    return raw


def build_scoring_months(
    entries: Iterable[Mapping[str, Any]], tz_name: str = DEFAULT_TIMEZONE
) -> list[ScoringMonth]:
    """Build ScoringMonth objects from ``{"key", "label", "end"?}`` entries."""
    tz = ZoneInfo(tz_name)
    months = []
    for entry in entries:
        key = entry["key"]
        end = entry.get("end")
        if isinstance(end, str):
            end_at = ensure_aware(datetime.datetime.fromisoformat(end), tz)
        elif isinstance(end, datetime.datetime):
            end_at = ensure_aware(end, tz)
        else:
            end_at = month_end(key, tz)
        months.append(ScoringMonth(key=key, label=entry.get("label", key), end=end_at))
    return months


def scoring_months_from_config(config: Mapping[str, Any]) -> list[ScoringMonth]:
    """Read the scoring months from a Flask config mapping."""
    entries = _load_json_setting(
        config.get("TOURNAMENT_MONTHS"), DEFAULT_TOURNAMENT_MONTHS
    )
    return build_scoring_months(
        entries, config.get("TOURNAMENT_TIMEZONE") or DEFAULT_TIMEZONE
    )


def late_months_from_config(config: Mapping[str, Any]) -> set[str]:
    """Read the month keys whose wins are worth the late-season points."""
    return set(
        _load_json_setting(
            config.get("LATE_SCORING_MONTHS"), DEFAULT_LATE_SCORING_MONTHS
        )
    )


def tournament_now(config: Mapping[str, Any]) -> datetime.datetime:
    """Return the current instant in the tournament timezone."""
    tz = ZoneInfo(config.get("TOURNAMENT_TIMEZONE") or DEFAULT_TIMEZONE)
    return datetime.datetime.now(tz)
