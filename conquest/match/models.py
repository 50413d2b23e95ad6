"""Data models for the match blueprint."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Optional

from conquest.core.ids import normalize_id as _id

TEAM1 = "team1"
TEAM2 = "team2"
SIDES = (TEAM1, TEAM2)


def _score(value: Any) -> int:
    """Parse a stored set score; blanks count as zero."""
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _ids(values: Any) -> list[str]:
    return [str(v) for v in values or []]


@dataclass(frozen=True)
class SetScore:
    """One played set, oriented team1/team2."""

    team1: int
    team2: int

    @property
    def winner(self) -> Optional[str]:
        """Return the side credited with the set."""
        if self.team1 > self.team2:
            return TEAM1
        if self.team2 > self.team1:
            return TEAM2
        return None


@dataclass
class MatchSubmission:
    """A result as entered: set scores are given from the winner's perspective."""

    winner: str
    set1_winner: int
    set1_loser: int
    set2_winner: int
    set2_loser: int
    set3_winner: Optional[int] = None
    set3_loser: Optional[int] = None
    set3_is_tiebreaker: bool = False
    team1_id: Optional[str] = None
    team2_id: Optional[str] = None
    match_date: Optional[str] = None
    level: Optional[str] = None
    match_type: Optional[str] = None
    team1_players: list[str] = field(default_factory=list)
    team2_players: list[str] = field(default_factory=list)
    challenge_id: Optional[str] = None
    match_id: Optional[str] = None
    notes: str = ""
    created_by: Optional[str] = None

    @property
    def has_set3(self) -> bool:
        """Return True when a third set was entered."""
        return self.set3_winner is not None and self.set3_loser is not None


@dataclass
class Match:
    """A completed match result."""

    id: str
    match_id: str
    team1_id: str
    team2_id: str
    date: str
    level: Optional[str]
    match_type: Optional[str]
    winner: str
    sets: list[SetScore]
    team1_sets: int
    team2_sets: int
    team1_games: int
    team2_games: int
    set3_is_tiebreaker: bool = False
    is_match_tiebreak: bool = False
    team1_players: list[str] = field(default_factory=list)
    team2_players: list[str] = field(default_factory=list)
    challenge_id: Optional[str] = None
    notes: str = ""
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_by: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def winner_team_id(self) -> str:
        """Return the id of the winning team."""
        return self.team1_id if self.winner == TEAM1 else self.team2_id

    def involves(self, team_id: str) -> bool:
        """Return True if ``team_id`` played in this match."""
        return team_id in (self.team1_id, self.team2_id)

    def side_of(self, team_id: str) -> Optional[str]:
        """Return ``team1``/``team2`` for a participating team."""
        if team_id == self.team1_id:
            return TEAM1
        if team_id == self.team2_id:
            return TEAM2
        return None

    def opponent_of(self, team_id: str) -> Optional[str]:
        """Return the other team's id."""
        side = self.side_of(team_id)
        if side is None:
            return None
        return self.team2_id if side == TEAM1 else self.team1_id

    def players_of(self, team_id: str) -> list[str]:
        """Return the players a team fielded."""
        side = self.side_of(team_id)
        if side == TEAM1:
            return self.team1_players
        if side == TEAM2:
            return self.team2_players
        return []

    def score_line(self) -> str:
        """Return the sets as ``6-4, 3-6, 1-0``."""
        return ", ".join(f"{s.team1}-{s.team2}" for s in self.sets)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Match:
        """Build a match from its stored shape."""
        sets = [
            SetScore(_score(data.get("set1Team1")), _score(data.get("set1Team2"))),
            SetScore(_score(data.get("set2Team1")), _score(data.get("set2Team2"))),
        ]
        set3 = SetScore(_score(data.get("set3Team1")), _score(data.get("set3Team2")))
        if set3.team1 or set3.team2:
            sets.append(set3)
        return cls(
            id=_id(data.get("id")) or _id(data.get("matchId")) or "",
            match_id=data.get("matchId") or "",
            team1_id=_id(data.get("team1Id")) or "",
            team2_id=_id(data.get("team2Id")) or "",
            date=str(data.get("date") or ""),
            level=_id(data.get("level")),
            match_type=data.get("matchType") or None,
            winner=data.get("winner") or TEAM1,
            sets=sets,
            team1_sets=int(data.get("team1Sets") or 0),
            team2_sets=int(data.get("team2Sets") or 0),
            team1_games=int(data.get("team1Games") or 0),
            team2_games=int(data.get("team2Games") or 0),
            set3_is_tiebreaker=bool(data.get("set3IsTiebreaker")),
            is_match_tiebreak=bool(data.get("isMatchTiebreak")),
            team1_players=_ids(data.get("team1Players")),
            team2_players=_ids(data.get("team2Players")),
            challenge_id=_id(data.get("originChallengeId")),
            notes=data.get("notes") or "",
            created_by=data.get("createdBy"),
            created_at=data.get("timestamp"),
            updated_by=data.get("updatedBy"),
            updated_at=data.get("updatedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the stored shape."""
        data: dict[str, Any] = {
            "id": self.id,
            "matchId": self.match_id,
            "team1Id": self.team1_id,
            "team2Id": self.team2_id,
            "date": self.date,
            "level": self.level,
            "matchType": self.match_type,
            "winner": self.winner,
            "set3IsTiebreaker": self.set3_is_tiebreaker,
            "isMatchTiebreak": self.is_match_tiebreak,
            "team1Sets": self.team1_sets,
            "team2Sets": self.team2_sets,
            "team1Games": self.team1_games,
            "team2Games": self.team2_games,
            "team1Players": list(self.team1_players),
            "team2Players": list(self.team2_players),
            "originChallengeId": self.challenge_id,
            "notes": self.notes,
            "createdBy": self.created_by,
            "timestamp": self.created_at
            or datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "updatedBy": self.updated_by,
            "updatedAt": self.updated_at,
        }
        for number in (1, 2, 3):
            score = self.sets[number - 1] if len(self.sets) >= number else None
            data[f"set{number}Team1"] = score.team1 if score else None
            data[f"set{number}Team2"] = score.team2 if score else None
        return data
