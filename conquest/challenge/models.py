"""Data models for the challenge blueprint."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from conquest.core.ids import normalize_id


class ChallengeStatus(str, Enum):
    """Lifecycle state of a challenge."""

    OPEN = "open"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COMPLETED = "completed"


@dataclass
class Challenge:
    """A proposed match between two teams."""

    id: str
    challenge_id: str
    challenger_team_id: str
    status: ChallengeStatus
    match_type: str
    proposed_level: str
    challenger_players: list[str]
    challenged_team_id: Optional[str] = None
    proposed_date: Optional[str] = None
    challenged_players: list[str] = field(default_factory=list)
    accepted_date: Optional[str] = None
    accepted_level: Optional[str] = None
    notes: str = ""
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    accepted_by: Optional[str] = None
    accepted_at: Optional[str] = None
    last_edited_by: Optional[str] = None
    last_edited_at: Optional[str] = None
    match_id: Optional[str] = None
    completed_at: Optional[str] = None

    @property
    def is_open_challenge(self) -> bool:
        """Return True when any team may accept."""
        return self.challenged_team_id is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Challenge:
        """Build a challenge from its stored shape."""
        return cls(
            id=normalize_id(data.get("id")) or "",
            challenge_id=data.get("challengeId") or "",
            challenger_team_id=normalize_id(data.get("challengerTeamId")) or "",
            status=ChallengeStatus(data.get("status") or ChallengeStatus.OPEN.value),
            match_type=data.get("matchType") or "doubles",
            proposed_level=normalize_id(data.get("proposedLevel")) or "",
            challenger_players=[str(p) for p in data.get("challengerPlayers") or []],
            challenged_team_id=normalize_id(data.get("challengedTeamId")),
            proposed_date=data.get("proposedDate") or None,
            challenged_players=[str(p) for p in data.get("challengedPlayers") or []],
            accepted_date=data.get("acceptedDate") or None,
            accepted_level=normalize_id(data.get("acceptedLevel")),
            notes=data.get("notes") or "",
            created_by=data.get("createdBy"),
            created_at=data.get("createdAt"),
            accepted_by=data.get("acceptedBy"),
            accepted_at=data.get("acceptedAt"),
            last_edited_by=data.get("lastEditedBy"),
            last_edited_at=data.get("lastEditedAt"),
            match_id=data.get("matchId"),
            completed_at=data.get("completedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the stored shape."""
        return {
            "id": self.id,
            "challengeId": self.challenge_id,
            "challengerTeamId": self.challenger_team_id,
            "challengedTeamId": self.challenged_team_id,
            "status": self.status.value,
            "matchType": self.match_type,
            "proposedDate": self.proposed_date,
            "proposedLevel": self.proposed_level,
            "challengerPlayers": list(self.challenger_players),
            "challengedPlayers": list(self.challenged_players),
            "acceptedDate": self.accepted_date,
            "acceptedLevel": self.accepted_level,
            "notes": self.notes,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "acceptedBy": self.accepted_by,
            "acceptedAt": self.accepted_at,
            "lastEditedBy": self.last_edited_by,
            "lastEditedAt": self.last_edited_at,
            "matchId": self.match_id,
            "completedAt": self.completed_at,
        }
