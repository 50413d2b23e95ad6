"""Leaderboard ranking: match-win points plus the capped bonus."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Mapping

from conquest.bonus.services import compute_bonus
from conquest.core.constants import (
    BONUS_CAP_RATIO,
    BONUSES_COLLECTION,
    CHAMPIONSHIP_QUALIFIERS,
    LATE_MONTH_WIN_POINTS,
    TEAMS_COLLECTION,
    WIN_POINTS,
)
from conquest.core.season import ScoringMonth, month_key
from conquest.errors import NotFoundError
from conquest.match.models import TEAM1, Match
from conquest.match.services import MatchService
from conquest.teams.services import load_bonus_entries, load_roster

if TYPE_CHECKING:
    from conquest.bonus.models import BonusBreakdown
    from conquest.storage.sync import SyncSession
    from conquest.teams.models import Team

logger = logging.getLogger(__name__)


@dataclass
class RankedTeam:
    """One leaderboard row."""

    team_id: str
    name: str
    match_win_points: float = 0
    wins: int = 0
    losses: int = 0
    matches_played: int = 0
    sets_won: int = 0
    games_won: int = 0
    bonus_points: float = 0
    capped_bonus: float = 0
    total_points: float = 0
    rank: int = 0
    championship_qualifying: bool = False

    def to_dict(self) -> dict:
        """Return the JSON shape."""
        return {
            "teamId": self.team_id,
            "name": self.name,
            "rank": self.rank,
            "totalPoints": self.total_points,
            "matchWinPoints": self.match_win_points,
            "bonusPoints": self.bonus_points,
            "cappedBonus": self.capped_bonus,
            "wins": self.wins,
            "losses": self.losses,
            "matchesPlayed": self.matches_played,
            "setsWon": self.sets_won,
            "gamesWon": self.games_won,
            "championshipQualifying": self.championship_qualifying,
        }


def win_points(match: Match, late_months: Iterable[str]) -> int:
    """Return the points a win in ``match`` is worth."""
    if month_key(match.date) in set(late_months):
        return LATE_MONTH_WIN_POINTS
    return WIN_POINTS


def capped_bonus(bonus: float, match_win_points: float) -> float:
    """Limit the bonus to a quarter of the match-win points."""
    return min(max(0, bonus), match_win_points * BONUS_CAP_RATIO)


def _tally(team: Team, matches: Iterable[Match], late_months: set[str]) -> RankedTeam:
    row = RankedTeam(team_id=team.id, name=team.name)
    for match in matches:
        side = match.side_of(team.id)
        if side is None:
            continue
        row.matches_played += 1
        is_team1 = side == TEAM1
        row.sets_won += match.team1_sets if is_team1 else match.team2_sets
        row.games_won += match.team1_games if is_team1 else match.team2_games
        if match.winner == side:
            row.wins += 1
            row.match_win_points += win_points(match, late_months)
        else:
            row.losses += 1
    return row


def rank_leaderboard(
    teams: Iterable[Team],
    matches: Iterable[Match],
    bonus_breakdowns: Mapping[str, BonusBreakdown],
    late_months: Iterable[str],
) -> list[RankedTeam]:
    """Rank teams by total points, then sets won, then games won.

    The sort is stable, so teams still tied after games won keep their input
    order. The top two ranks qualify for the championship.
    """
    matches = list(matches)
    late = set(late_months)
    rows = []
    for team in teams:
        row = _tally(team, matches, late)
        breakdown = bonus_breakdowns.get(team.id)
        row.bonus_points = breakdown.total if breakdown else 0
        row.capped_bonus = capped_bonus(row.bonus_points, row.match_win_points)
        row.total_points = row.match_win_points + row.capped_bonus
        rows.append(row)

    rows.sort(key=lambda r: (r.total_points, r.sets_won, r.games_won), reverse=True)
    for index, row in enumerate(rows, start=1):
        row.rank = index
        row.championship_qualifying = index <= CHAMPIONSHIP_QUALIFIERS
        logger.debug(
            "%d. %s: %s points (%s win + %s bonus), %d-%d, %d sets, %d games",
            index,
            row.name,
            row.total_points,
            row.match_win_points,
            row.capped_bonus,
            row.wins,
            row.losses,
            row.sets_won,
            row.games_won,
        )
    return rows


class LeaderboardService:
    """Service class for building the standings from stored collections."""

    @staticmethod
    def _breakdowns(teams, players, entries, matches, now, months):
        return {
            team.id: compute_bonus(
                team.id, matches, players, entries, team, now, months
            )
            for team in teams
        }

    @staticmethod
    def team_bonus(
        session: SyncSession,
        team_id: str,
        now: datetime.datetime,
        months: list[ScoringMonth],
    ) -> BonusBreakdown:
        """Compute one team's bonus breakdown."""
        teams, players = load_roster(session.load(TEAMS_COLLECTION, {}))
        team = next((t for t in teams if t.id == team_id), None)
        if team is None:
            raise NotFoundError(f"Team '{team_id}' not found.")
        entries = load_bonus_entries(session.load(BONUSES_COLLECTION, []))
        matches = MatchService.list_matches(session)
        return compute_bonus(team.id, matches, players, entries, team, now, months)

    @staticmethod
    def standings(
        session: SyncSession,
        now: datetime.datetime,
        months: list[ScoringMonth],
        late_months: Iterable[str],
    ) -> list[RankedTeam]:
        """Return the ranked leaderboard."""
        teams, players = load_roster(session.load(TEAMS_COLLECTION, {}))
        entries = load_bonus_entries(session.load(BONUSES_COLLECTION, []))
        matches = MatchService.list_matches(session)
        breakdowns = LeaderboardService._breakdowns(
            teams, players, entries, matches, now, months
        )
        return rank_leaderboard(teams, matches, breakdowns, late_months)
