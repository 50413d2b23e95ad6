"""Monthly and season bonus calculation for a team."""

from __future__ import annotations

import datetime
import logging
from collections import defaultdict
from typing import Iterable, Mapping, Optional

from conquest.core.constants import (
    MAX_ROSTER_SIZE,
    MIXED_DOUBLES_THRESHOLD,
    PRACTICE_MONTHLY_CAP,
    PRACTICE_POINTS_PER_SESSION,
    PRACTICE_SEASON_CAP,
    UNDER_PARTICIPATION_PENALTY,
    UNDER_PARTICIPATION_THRESHOLD,
    UNIFORM_BONUS_POINTS,
    VARIETY_THRESHOLD,
    VOLUME_BONUS_TIERS,
)
from conquest.core.season import ScoringMonth, month_key
from conquest.match.models import Match
from conquest.teams.models import BonusEntry, Player, Team
from conquest.teams.services import (
    MIXED_DOUBLES,
    active_roster,
    index_players,
    resolve_match_type,
)

from .models import BonusBreakdown, MonthBonus

logger = logging.getLogger(__name__)


def volume_bonus(match_count: int) -> int:
    """Return the points of the highest volume tier reached."""
    for threshold, points in VOLUME_BONUS_TIERS:
        if match_count >= threshold:
            return points
    return 0


def uniform_bonus(uniform_type: str, photo_submitted: bool) -> int:
    """Return the uniform bonus; nothing counts without a photo."""
    if not photo_submitted:
        return 0
    return UNIFORM_BONUS_POINTS.get(uniform_type, 0)


def practice_bonus(practices: Mapping[str, int]) -> float:
    """Return the practice bonus, capped per month and again for the season."""
    total = sum(
        min(count * PRACTICE_POINTS_PER_SESSION, PRACTICE_MONTHLY_CAP)
        for count in practices.values()
    )
    return min(total, PRACTICE_SEASON_CAP)


def is_mixed_doubles(
    match: Match, team_id: str, players_by_id: Mapping[str, Player]
) -> bool:
    """Classify a match as mixed doubles from the team's point of view."""
    fielded = [
        players_by_id[pid] for pid in match.players_of(team_id) if pid in players_by_id
    ]
    return resolve_match_type(match.match_type, fielded) == MIXED_DOUBLES


def _score_month(
    team_id: str,
    month: ScoringMonth,
    matches: list[Match],
    roster_ids: set[str],
    players_by_id: Mapping[str, Player],
    now: datetime.date,
) -> MonthBonus:
    count = len(matches)
    row = MonthBonus(
        key=month.key,
        label=month.label,
        matches_played=count,
        month_ended=month.has_ended(now),
    )

    row.volume = volume_bonus(count)
    if count < UNDER_PARTICIPATION_THRESHOLD and row.month_ended:
        row.penalty = UNDER_PARTICIPATION_PENALTY

    if not matches:
        return row

    fielded = {pid for m in matches for pid in m.players_of(team_id)}
    row.players_fielded = len(fielded)
    if 0 < len(roster_ids) <= MAX_ROSTER_SIZE and fielded == roster_ids:
        row.full_roster = 1

    opponents = {m.opponent_of(team_id) for m in matches}
    row.opponents = len(opponents)
    if len(opponents) >= VARIETY_THRESHOLD:
        row.team_variety = 1

    levels = sorted({m.level for m in matches if m.level})
    row.levels = levels
    if len(levels) >= VARIETY_THRESHOLD:
        row.level_variety = 1

    row.mixed_doubles_matches = len(
        [m for m in matches if is_mixed_doubles(m, team_id, players_by_id)]
    )
    if row.mixed_doubles_matches >= MIXED_DOUBLES_THRESHOLD:
        row.mixed_doubles = 1
    return row


def compute_bonus(
    team_id: str,
    matches: Iterable[Match],
    roster: Iterable[Player],
    manual_entries: Iterable[BonusEntry],
    team: Optional[Team],
    now: datetime.date,
    months: Iterable[ScoringMonth],
) -> BonusBreakdown:
    """Compute a team's uncapped season bonus with its per-month breakdown.

    Matches are bucketed by the calendar month of their date; months outside
    the scoring window are ignored. The 25% cap is applied by the leaderboard.
    """
    months = list(months)
    window = {m.key for m in months}
    by_month: dict[str, list[Match]] = defaultdict(list)
    for match in matches:
        if not match.involves(team_id):
            continue
        key = month_key(match.date)
        if key in window:
            by_month[key].append(match)

    players = list(roster)
    players_by_id = index_players(players)
    roster_ids = {p.id for p in active_roster(players, team_id)}

    breakdown = BonusBreakdown(
        team_id=team_id,
        months=[
            _score_month(
                team_id, month, by_month[month.key], roster_ids, players_by_id, now
            )
            for month in months
        ],
    )
    breakdown.manual = sum(e.points for e in manual_entries if e.team_id == team_id)
    if team is not None:
        breakdown.uniform = uniform_bonus(
            team.uniform_type, team.uniform_photo_submitted
        )
        breakdown.practice = practice_bonus(team.practices)

    for row in breakdown.months:
        logger.debug(
            "Team %s %s: %d matches, volume %+d, penalty %+d, roster %+d, "
            "opponents %+d, levels %+d, mixed %+d",
            team_id,
            row.label,
            row.matches_played,
            row.volume,
            row.penalty,
            row.full_roster,
            row.team_variety,
            row.level_variety,
            row.mixed_doubles,
        )
    logger.debug(
        "Team %s bonus: raw %s, floored %s",
        team_id,
        breakdown.raw_total,
        breakdown.total,
    )
    return breakdown
