"""Tennis set score validation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from conquest.core.constants import TIEBREAK_MIN_MARGIN, TIEBREAK_WINNING_SCORE

INVALID_SCORE_MESSAGE = (
    "Invalid tennis score "
    "(must be 6-0 through 6-4, 7-5, 7-6, or 1-0 for match tiebreak)"
)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one set."""

    valid: bool
    error: Optional[str] = None
    is_match_tiebreak: bool = False

    def to_dict(self) -> dict:
        """Return the JSON shape."""
        return {
            "valid": self.valid,
            "error": self.error,
            "isMatchTiebreak": self.is_match_tiebreak,
        }


def _rejected(message: str) -> ValidationResult:
    return ValidationResult(valid=False, error=message)


def validate_set_score(
    score_a: int,
    score_b: int,
    is_tiebreaker: bool = False,
    is_set3: bool = False,
) -> ValidationResult:
    """Validate the score of a single set.

    A 0-0 placeholder is always accepted. A third set recorded as 1-0 is the
    match tiebreak shorthand. A 10-point tiebreak needs the winner on 10 or
    more, the loser under 10 and a margin of two. A regular set must end 6-0
    through 6-4, 7-5 or 7-6, in either order.
    """
    if score_a < 0 or score_b < 0:
        return _rejected("Scores cannot be negative")

    if score_a == 0 and score_b == 0:
        return ValidationResult(valid=True)

    higher = max(score_a, score_b)
    lower = min(score_a, score_b)

    if is_set3 and higher == 1 and lower == 0:
        return ValidationResult(valid=True, is_match_tiebreak=True)

    if is_tiebreaker:
        if higher < TIEBREAK_WINNING_SCORE:
            return _rejected(
                f"Tiebreaker winner must score at least {TIEBREAK_WINNING_SCORE} points"
            )
        if lower >= TIEBREAK_WINNING_SCORE:
            return _rejected(
                f"Tiebreaker loser must score less than {TIEBREAK_WINNING_SCORE} points"
            )
        if higher - lower < TIEBREAK_MIN_MARGIN:
            return _rejected(f"Tiebreaker must be won by {TIEBREAK_MIN_MARGIN}+ points")
        return ValidationResult(valid=True)

    if score_a == score_b:
        return _rejected("Tennis sets cannot be tied")
    if higher == 6 and lower <= 4:
        return ValidationResult(valid=True)
    if higher == 7 and lower in (5, 6):
        return ValidationResult(valid=True)
    return _rejected(INVALID_SCORE_MESSAGE)
