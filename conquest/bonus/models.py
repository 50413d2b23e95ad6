"""Audit records produced by the bonus calculator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass
class MonthBonus:
    """Bonus components earned by one team in one scoring month."""

    key: str
    label: str
    matches_played: int
    month_ended: bool
    volume: int = 0
    penalty: int = 0
    full_roster: int = 0
    team_variety: int = 0
    level_variety: int = 0
    mixed_doubles: int = 0
    players_fielded: int = 0
    opponents: int = 0
    levels: list[str] = field(default_factory=list)
    mixed_doubles_matches: int = 0

    @property
    def total(self) -> int:
        """Return the month's signed bonus."""
        return (
            self.volume
            + self.penalty
            + self.full_roster
            + self.team_variety
            + self.level_variety
            + self.mixed_doubles
        )

    def to_dict(self) -> dict:
        """Return the JSON shape."""
        data = asdict(self)
        data["total"] = self.total
        return data


@dataclass
class BonusBreakdown:
    """A team's season bonus with the per-month audit trail."""

    team_id: str
    months: list[MonthBonus]
    manual: float = 0
    uniform: int = 0
    practice: float = 0

    @property
    def raw_total(self) -> float:
        """Return the sum of every component before flooring."""
        monthly = sum(m.total for m in self.months)
        return monthly + self.manual + self.uniform + self.practice

    @property
    def total(self) -> float:
        """Return the uncapped bonus; penalties cannot take it below zero."""
        return max(0, self.raw_total)

    def to_dict(self) -> dict:
        """Return the JSON shape."""
        return {
            "teamId": self.team_id,
            "months": [m.to_dict() for m in self.months],
            "manual": self.manual,
            "uniform": self.uniform,
            "practice": self.practice,
            "rawTotal": self.raw_total,
            "total": self.total,
        }
