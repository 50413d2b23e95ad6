"""Roster rules shared by the bonus calculator and the challenge lifecycle."""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Mapping, Optional

from conquest.core.constants import MAX_ROSTER_SIZE
from conquest.errors import ValidationError

from .models import BonusEntry, Captain, Player, Team

SINGLES = "singles"
DOUBLES = "doubles"
MIXED_DOUBLES = "mixed_doubles"
MATCH_TYPES = (SINGLES, DOUBLES, MIXED_DOUBLES)


def effective_rating(player: Player) -> float:
    """Return the dynamic rating when present, else the NTRP rating."""
    return player.dynamic_rating or player.ntrp_rating or 0.0


def active_roster(players: Iterable[Player], team_id: str) -> list[Player]:
    """Return the active players of a team."""
    return [p for p in players if p.team_id == team_id and p.is_active]


def check_roster_sizes(teams: Iterable[Team], players: Iterable[Player]) -> None:
    """Raise if any team has more players than a roster may hold."""
    sizes = Counter(p.team_id for p in players if p.team_id)
    for team in teams:
        if sizes[team.id] > MAX_ROSTER_SIZE:
            raise ValidationError(
                f"{team.name or team.id} has {sizes[team.id]} players; "
                f"a roster holds at most {MAX_ROSTER_SIZE}."
            )


def combined_rating(players: Iterable[Player]) -> float:
    """Sum the effective ratings of a side, rounded to one decimal."""
    return round(sum(effective_rating(p) for p in players), 1)


def has_both_genders(players: Iterable[Player]) -> bool:
    """Return True when the players include at least one man and one woman."""
    genders = {p.gender for p in players}
    return "M" in genders and "F" in genders


def is_mixed_pair(players: list[Player]) -> bool:
    """Return True for exactly one man and one woman."""
    return len(players) == 2 and has_both_genders(players)


def required_players(match_type: str) -> int:
    """Return how many players each side fields for a match type."""
    return 1 if match_type == SINGLES else 2


def resolve_match_type(
    explicit_type: Optional[str], side_players: Iterable[Player]
) -> str:
    """Return the explicit match type, else infer it from the side's genders.

    Records written before the match type was tagged only list players; a side
    with both genders is then taken to be mixed doubles.
    """
    if explicit_type:
        return explicit_type
    players = list(side_players)
    if has_both_genders(players):
        return MIXED_DOUBLES
    return SINGLES if len(players) == 1 else DOUBLES


def index_players(players: Iterable[Player]) -> dict[str, Player]:
    """Map player id to player."""
    return {p.id: p for p in players}


def lookup_players(
    ids: Iterable[Any], players_by_id: Mapping[str, Player]
) -> list[Player]:
    """Resolve player ids, raising on unknown ids."""
    found = []
    for player_id in ids:
        player = players_by_id.get(str(player_id))
        if player is None:
            raise ValidationError(f"Unknown player '{player_id}'.")
        found.append(player)
    return found


def check_side(
    player_ids: list[Any],
    team_id: str,
    match_type: str,
    level: float,
    players_by_id: Mapping[str, Player],
) -> list[str]:
    """Validate one side's lineup for a match and return the normalized ids.

    The side must field the right number of distinct active players from its
    own team, their combined rating must not exceed the level, and a mixed
    doubles side must pair a man with a woman.
    """
    needed = required_players(match_type)
    ids = [str(pid) for pid in player_ids]
    if len(ids) != needed or len(set(ids)) != needed:
        noun = "player" if needed == 1 else "players"
        raise ValidationError(f"Please select exactly {needed} {noun}.")

    lineup = lookup_players(ids, players_by_id)
    for player in lineup:
        if player.team_id != team_id:
            raise ValidationError(f"{player.name} is not on this team.")
        if not player.is_active:
            raise ValidationError(f"{player.name} is not active.")

    rating = combined_rating(lineup)
    if rating > level:
        raise ValidationError(
            f"Combined rating ({rating:.1f}) exceeds match level ({level})."
        )
    if match_type == MIXED_DOUBLES and not is_mixed_pair(lineup):
        raise ValidationError("Mixed doubles requires one man and one woman.")
    return ids


def load_roster(
    payload: Optional[Mapping[str, Any]],
) -> tuple[list[Team], list[Player]]:
    """Parse the teams collection into teams and players."""
    payload = payload or {}
    teams = [Team.from_dict(t) for t in payload.get("teams") or []]
    players = [Player.from_dict(p) for p in payload.get("players") or []]
    return teams, players


def load_bonus_entries(payload: Any) -> list[BonusEntry]:
    """Parse the bonuses collection."""
    return [BonusEntry.from_dict(b) for b in payload or []]


def load_captains(payload: Any) -> list[Captain]:
    """Parse the captains collection."""
    return [Captain.from_dict(c) for c in payload or []]
