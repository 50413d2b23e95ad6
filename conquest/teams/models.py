"""Data models for teams, players and captains."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from conquest.core.ids import normalize_id as _id


class PlayerStatus(str, Enum):
    """Availability of a rostered player."""

    ACTIVE = "active"
    INJURED = "injured"
    INACTIVE = "inactive"


@dataclass
class Player:
    """A rostered player."""

    id: str
    first_name: str
    last_name: str
    gender: str
    ntrp_rating: float
    dynamic_rating: Optional[float] = None
    status: PlayerStatus = PlayerStatus.ACTIVE
    team_id: Optional[str] = None
    email: Optional[str] = None

    @property
    def name(self) -> str:
        """Return the player's display name."""
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_active(self) -> bool:
        """Return True when the player can be fielded."""
        return self.status == PlayerStatus.ACTIVE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Player:
        """Build a player from its stored shape."""
        dynamic = data.get("dynamicRating")
        return cls(
            id=_id(data.get("id")) or "",
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            gender=data.get("gender", ""),
            ntrp_rating=float(data.get("ntrpRating") or 0),
            dynamic_rating=float(dynamic) if dynamic else None,
            status=PlayerStatus(data.get("status") or PlayerStatus.ACTIVE.value),
            team_id=_id(data.get("teamId")),
            email=data.get("email"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the stored shape."""
        return {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "gender": self.gender,
            "ntrpRating": self.ntrp_rating,
            "dynamicRating": self.dynamic_rating,
            "status": self.status.value,
            "teamId": self.team_id,
            "email": self.email,
        }


@dataclass
class Team:
    """A tournament team and its bonus eligibility flags."""

    id: str
    name: str
    captain_id: Optional[str] = None
    color: Optional[str] = None
    uniform_type: str = "none"
    uniform_photo_submitted: bool = False
    practices: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Team:
        """Build a team from its stored shape."""
        bonuses = data.get("bonuses") or {}
        return cls(
            id=_id(data.get("id")) or "",
            name=data.get("name", ""),
            captain_id=_id(data.get("captainId")),
            color=data.get("color"),
            uniform_type=bonuses.get("uniformType") or "none",
            uniform_photo_submitted=bool(bonuses.get("uniformPhotoSubmitted")),
            practices={
                key: int(count or 0)
                for key, count in (bonuses.get("practices") or {}).items()
            },
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the stored shape."""
        return {
            "id": self.id,
            "name": self.name,
            "captainId": self.captain_id,
            "color": self.color,
            "bonuses": {
                "uniformType": self.uniform_type,
                "uniformPhotoSubmitted": self.uniform_photo_submitted,
                "practices": dict(self.practices),
            },
        }


@dataclass
class BonusEntry:
    """A manually entered bonus or penalty."""

    id: str
    team_id: str
    points: float
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BonusEntry:
        """Build an entry from its stored shape."""
        return cls(
            id=_id(data.get("id")) or "",
            team_id=_id(data.get("teamId")) or "",
            points=float(data.get("points") or 0),
            description=data.get("description", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the stored shape."""
        return {
            "id": self.id,
            "teamId": self.team_id,
            "points": self.points,
            "description": self.description,
        }


@dataclass
class Captain:
    """A team captain who receives match notifications."""

    id: str
    name: str
    email: Optional[str] = None
    team_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Captain:
        """Build a captain from its stored shape."""
        return cls(
            id=_id(data.get("id")) or "",
            name=data.get("name", ""),
            email=data.get("email"),
            team_id=_id(data.get("teamId")),
        )
