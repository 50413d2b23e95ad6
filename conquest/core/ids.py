"""Readable sequential labels for matches and challenges."""

from __future__ import annotations

import datetime
import re
from typing import Any, Iterable

MATCH_PREFIX = "MATCH"
CHALLENGE_PREFIX = "CHALL"


def _next_label(
    prefix: str, attr: str, key: str, records: Iterable[Any], year: int | None
) -> str:
    year = year or datetime.date.today().year
    pattern = re.compile(rf"^{prefix}-{year}-(\d+)$")
    highest = 0
    for record in records:
        label = (
            record.get(key) if isinstance(record, dict) else getattr(record, attr, None)
        )
        if not label:
            continue
        found = pattern.match(str(label))
        if found:
            highest = max(highest, int(found.group(1)))
    return f"{prefix}-{year}-{highest + 1:03d}"


def generate_match_id(existing: Iterable[Any], year: int | None = None) -> str:
    """Return the next ``MATCH-YYYY-###`` label."""
    return _next_label(MATCH_PREFIX, "match_id", "matchId", existing, year)


def generate_challenge_id(existing: Iterable[Any], year: int | None = None) -> str:
    """Return the next ``CHALL-YYYY-###`` label."""
    return _next_label(CHALLENGE_PREFIX, "challenge_id", "challengeId", existing, year)


def normalize_id(value: Any) -> str | None:
    """Return a stored identifier, which may be numeric, as a string."""
    if value is None or value == "":
        return None
    return str(value)
