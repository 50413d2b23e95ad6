"""Challenge lifecycle: open, accepted, completed or declined."""

from __future__ import annotations

import dataclasses
import datetime
import logging
import uuid
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional

from conquest.activity import ActionType
from conquest.core.constants import (
    CHALLENGES_COLLECTION,
    OVERDUE_AFTER_DAYS,
    TEAMS_COLLECTION,
)
from conquest.core.ids import generate_challenge_id
from conquest.core.season import parse_match_date
from conquest.errors import NotFoundError, ValidationError
from conquest.match.models import Match, MatchSubmission
from conquest.match.services import MatchService, build_match_result
from conquest.teams.models import Player
from conquest.teams.services import MATCH_TYPES, check_side, index_players, load_roster

from .models import Challenge, ChallengeStatus

if TYPE_CHECKING:
    from conquest.activity import ActivityLog
    from conquest.storage.sync import SyncSession

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("date", "level", "challengerPlayers", "challengedPlayers", "notes")


def _now() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def _level(value: Any) -> float:
    try:
        level = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid match level '{value}'.") from None
    if level <= 0:
        raise ValidationError(f"Invalid match level '{value}'.")
    return level


def _date(value: Any, required: bool = False) -> Optional[str]:
    if not value:
        if required:
            raise ValidationError("Please select a match date.")
        return None
    parsed = parse_match_date(value)
    if parsed is None:
        raise ValidationError(f"Invalid date '{value}'.")
    return parsed.isoformat()


def _require_status(
    challenge: Challenge, allowed: ChallengeStatus, action: str
) -> None:
    if challenge.status != allowed:
        raise ValidationError(
            f"Cannot {action} a challenge that is {challenge.status.value}."
        )


def create_challenge(
    challenger_team_id: str,
    challenger_players: list[Any],
    match_type: str,
    proposed_level: Any,
    players_by_id: Mapping[str, Player],
    proposed_date: Any = None,
    challenged_team_id: Optional[str] = None,
    notes: str = "",
    created_by: Optional[str] = None,
    existing: Iterable[Any] = (),
) -> Challenge:
    """Open a new challenge; no challenged team means any team may accept."""
    if match_type not in MATCH_TYPES:
        raise ValidationError(f"Unknown match type '{match_type}'.")
    challenger_team_id = str(challenger_team_id)
    if challenged_team_id is not None:
        challenged_team_id = str(challenged_team_id)
        if challenged_team_id == challenger_team_id:
            raise ValidationError("A team cannot challenge itself.")

    level = _level(proposed_level)
    players = check_side(
        challenger_players, challenger_team_id, match_type, level, players_by_id
    )
    date = _date(proposed_date)
    year = parse_match_date(date).year if date else None
    return Challenge(
        id=str(uuid.uuid4()),
        challenge_id=generate_challenge_id(existing, year),
        challenger_team_id=challenger_team_id,
        challenged_team_id=challenged_team_id,
        status=ChallengeStatus.OPEN,
        match_type=match_type,
        proposed_level=str(proposed_level),
        proposed_date=date,
        challenger_players=players,
        notes=notes,
        created_by=created_by,
        created_at=_now(),
    )


def accept_challenge(
    challenge: Challenge,
    actor_team_id: str,
    accepted_date: Any,
    accepted_level: Any,
    challenged_players: list[Any],
    players_by_id: Mapping[str, Player],
    accepted_by: Optional[str] = None,
) -> Challenge:
    """Accept an open challenge, fixing date, level and both lineups."""
    _require_status(challenge, ChallengeStatus.OPEN, "accept")
    actor_team_id = str(actor_team_id)
    if actor_team_id == challenge.challenger_team_id:
        raise ValidationError("A team cannot accept its own challenge.")
    if (
        not challenge.is_open_challenge
        and actor_team_id != challenge.challenged_team_id
    ):
        raise ValidationError("This challenge was issued to another team.")

    date = _date(accepted_date or challenge.proposed_date, required=True)
    level_value = accepted_level or challenge.proposed_level
    level = _level(level_value)
    check_side(
        challenge.challenger_players,
        challenge.challenger_team_id,
        challenge.match_type,
        level,
        players_by_id,
    )
    players = check_side(
        challenged_players, actor_team_id, challenge.match_type, level, players_by_id
    )
    return dataclasses.replace(
        challenge,
        status=ChallengeStatus.ACCEPTED,
        challenged_team_id=actor_team_id,
        accepted_date=date,
        accepted_level=str(level_value),
        challenged_players=players,
        accepted_by=accepted_by,
        accepted_at=_now(),
    )


def decline_challenge(
    challenge: Challenge, actor_team_id: Optional[str] = None
) -> Challenge:
    """Decline an open challenge."""
    _require_status(challenge, ChallengeStatus.OPEN, "decline")
    is_challenger = str(actor_team_id) == challenge.challenger_team_id
    if actor_team_id is not None and is_challenger:
        raise ValidationError("A team cannot decline its own challenge.")
    return dataclasses.replace(challenge, status=ChallengeStatus.DECLINED)


def complete_challenge(
    challenge: Challenge, submission: MatchSubmission
) -> tuple[Challenge, Match]:
    """Turn an accepted challenge and its result into a match.

    Teams, date, level, match type and lineups come from the challenge; the
    challenger is team 1.
    """
    _require_status(challenge, ChallengeStatus.ACCEPTED, "complete")
    submission = dataclasses.replace(
        submission,
        team1_id=challenge.challenger_team_id,
        team2_id=challenge.challenged_team_id,
        match_date=challenge.accepted_date,
        level=challenge.accepted_level,
        match_type=challenge.match_type,
        team1_players=list(challenge.challenger_players),
        team2_players=list(challenge.challenged_players),
        challenge_id=challenge.id,
    )
    match = build_match_result(submission)
    completed = dataclasses.replace(
        challenge, status=ChallengeStatus.COMPLETED, completed_at=_now()
    )
    return completed, match


def edit_pending_challenge(
    challenge: Challenge,
    changes: Mapping[str, Any],
    players_by_id: Mapping[str, Player],
    edited_by: Optional[str] = None,
) -> tuple[Challenge, dict[str, dict[str, Any]]]:
    """Edit the date, level, lineups or notes of an accepted challenge.

    Returns the edited challenge and ``{field: {"from": old, "to": new}}`` for
    every field that actually changed.
    """
    _require_status(challenge, ChallengeStatus.ACCEPTED, "edit")
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot edit {', '.join(sorted(unknown))}.")

    before = {
        "date": challenge.accepted_date,
        "level": challenge.accepted_level,
        "challengerPlayers": challenge.challenger_players,
        "challengedPlayers": challenge.challenged_players,
        "notes": challenge.notes,
    }
    after = dict(before)
    if "date" in changes:
        after["date"] = _date(changes["date"], required=True)
    if "level" in changes:
        _level(changes["level"])
        after["level"] = str(changes["level"])
    for key in ("challengerPlayers", "challengedPlayers"):
        if key in changes:
            after[key] = [str(p) for p in changes[key] or []]
    if "notes" in changes:
        after["notes"] = changes["notes"] or ""

    level = _level(after["level"])
    after["challengerPlayers"] = check_side(
        after["challengerPlayers"],
        challenge.challenger_team_id,
        challenge.match_type,
        level,
        players_by_id,
    )
    after["challengedPlayers"] = check_side(
        after["challengedPlayers"],
        challenge.challenged_team_id,
        challenge.match_type,
        level,
        players_by_id,
    )

    diff = {}
    for key, old in before.items():
        new = after[key]
        if key.endswith("Players"):
            changed = sorted(old) != sorted(new)
        else:
            changed = old != new
        if changed:
            diff[key] = {"from": old, "to": new}

    edited = dataclasses.replace(
        challenge,
        accepted_date=after["date"],
        accepted_level=after["level"],
        challenger_players=after["challengerPlayers"],
        challenged_players=after["challengedPlayers"],
        notes=after["notes"],
        last_edited_by=edited_by,
        last_edited_at=_now(),
    )
    return edited, diff


def is_overdue(challenge: Challenge, today: datetime.date) -> bool:
    """Return True once an accepted challenge is a day past its date."""
    if challenge.status != ChallengeStatus.ACCEPTED:
        return False
    scheduled = parse_match_date(challenge.accepted_date)
    if scheduled is None:
        return False
    return (today - scheduled).days >= OVERDUE_AFTER_DAYS


class ChallengeService:
    """Applies challenge transitions to the stored collections."""

    @staticmethod
    def _load(session: SyncSession) -> list[Challenge]:
        return [
            Challenge.from_dict(c) for c in session.load(CHALLENGES_COLLECTION, [])
        ]

    @staticmethod
    def _save(session: SyncSession, challenges: list[Challenge]) -> None:
        session.save(CHALLENGES_COLLECTION, [c.to_dict() for c in challenges])

    @staticmethod
    def _find(challenges: list[Challenge], challenge_id: str) -> int:
        for index, challenge in enumerate(challenges):
            if challenge_id in (challenge.id, challenge.challenge_id):
                return index
        raise NotFoundError(f"Challenge '{challenge_id}' not found.")

    @staticmethod
    def _players(session: SyncSession) -> dict[str, Player]:
        _, players = load_roster(session.load(TEAMS_COLLECTION, {}))
        return index_players(players)

    @staticmethod
    def _team_ids(session: SyncSession) -> set[str]:
        teams, _ = load_roster(session.load(TEAMS_COLLECTION, {}))
        return {t.id for t in teams}

    @staticmethod
    def list_challenges(
        session: SyncSession, status: Optional[str] = None
    ) -> list[Challenge]:
        """Return stored challenges, optionally filtered by status."""
        challenges = ChallengeService._load(session)
        if status:
            challenges = [c for c in challenges if c.status.value == status]
        return challenges

    @staticmethod
    def create(
        session: SyncSession,
        activity: Optional[ActivityLog] = None,
        actor: Optional[str] = None,
        **fields: Any,
    ) -> Challenge:
        """Create and save a challenge."""
        team_ids = ChallengeService._team_ids(session)
        for key in ("challenger_team_id", "challenged_team_id"):
            team_id = fields.get(key)
            if team_id is not None and str(team_id) not in team_ids:
                raise NotFoundError(f"Team '{team_id}' not found.")

        challenges = ChallengeService._load(session)
        challenge = create_challenge(
            players_by_id=ChallengeService._players(session),
            created_by=actor,
            existing=challenges,
            **fields,
        )
        ChallengeService._save(session, challenges + [challenge])
        if activity is not None:
            activity.record(
                ActionType.CHALLENGE_CREATED,
                actor,
                {
                    "challengerTeamId": challenge.challenger_team_id,
                    "challengedTeamId": challenge.challenged_team_id,
                    "level": challenge.proposed_level,
                },
                challenge.challenge_id,
                None,
                challenge.to_dict(),
            )
        return challenge

    @staticmethod
    def accept(
        session: SyncSession,
        challenge_id: str,
        actor_team_id: str,
        accepted_date: Any,
        accepted_level: Any,
        challenged_players: list[Any],
        activity: Optional[ActivityLog] = None,
        actor: Optional[str] = None,
    ) -> Challenge:
        """Accept a challenge and save it."""
        challenges = ChallengeService._load(session)
        index = ChallengeService._find(challenges, challenge_id)
        before = challenges[index]
        accepted = accept_challenge(
            before,
            actor_team_id,
            accepted_date,
            accepted_level,
            challenged_players,
            ChallengeService._players(session),
            accepted_by=actor,
        )
        challenges[index] = accepted
        ChallengeService._save(session, challenges)
        if activity is not None:
            activity.record(
                ActionType.CHALLENGE_ACCEPTED,
                actor,
                {"date": accepted.accepted_date, "level": accepted.accepted_level},
                accepted.challenge_id,
                before.to_dict(),
                accepted.to_dict(),
            )
        return accepted

    @staticmethod
    def decline(
        session: SyncSession,
        challenge_id: str,
        actor_team_id: Optional[str] = None,
        activity: Optional[ActivityLog] = None,
        actor: Optional[str] = None,
    ) -> Challenge:
        """Decline a challenge and save it."""
        challenges = ChallengeService._load(session)
        index = ChallengeService._find(challenges, challenge_id)
        before = challenges[index]
        declined = decline_challenge(before, actor_team_id)
        challenges[index] = declined
        ChallengeService._save(session, challenges)
        if activity is not None:
            activity.record(
                ActionType.CHALLENGE_DECLINED,
                actor,
                {"challengerTeamId": declined.challenger_team_id},
                declined.challenge_id,
                before.to_dict(),
                declined.to_dict(),
            )
        return declined

    @staticmethod
    def complete(
        session: SyncSession,
        challenge_id: str,
        submission: MatchSubmission,
        activity: Optional[ActivityLog] = None,
        actor: Optional[str] = None,
    ) -> tuple[Challenge, Match]:
        """Record the result of an accepted challenge.

        The match is saved before the challenge is retired; the two
        collections are versioned independently.
        """
        challenges = ChallengeService._load(session)
        index = ChallengeService._find(challenges, challenge_id)
        completed, match = complete_challenge(challenges[index], submission)
        match.created_by = match.created_by or actor

        MatchService.append_match(session, match)
        completed.match_id = match.match_id
        challenges[index] = completed
        ChallengeService._save(session, challenges)
        logger.info(
            "Challenge %s completed as %s", completed.challenge_id, match.match_id
        )

        if activity is not None:
            activity.record(
                ActionType.MATCH_CREATED,
                actor,
                {
                    "matchId": match.match_id,
                    "challengeId": completed.challenge_id,
                    "winner": match.winner_team_id,
                    "scores": match.score_line(),
                    "level": match.level,
                },
                match.match_id,
                None,
                match.to_dict(),
            )
        return completed, match

    @staticmethod
    def edit(
        session: SyncSession,
        challenge_id: str,
        changes: Mapping[str, Any],
        activity: Optional[ActivityLog] = None,
        actor: Optional[str] = None,
    ) -> tuple[Challenge, dict[str, dict[str, Any]]]:
        """Edit an accepted challenge and save it with a logged diff."""
        challenges = ChallengeService._load(session)
        index = ChallengeService._find(challenges, challenge_id)
        before = challenges[index]
        edited, diff = edit_pending_challenge(
            before, changes, ChallengeService._players(session), edited_by=actor
        )
        if not diff:
            return before, diff

        challenges[index] = edited
        ChallengeService._save(session, challenges)
        if activity is not None:
            activity.record(
                ActionType.PENDING_MATCH_EDITED,
                actor,
                {"changes": diff},
                edited.challenge_id,
                before.to_dict(),
                edited.to_dict(),
            )
        return edited, diff

    @staticmethod
    def delete(
        session: SyncSession,
        challenge_id: str,
        activity: Optional[ActivityLog] = None,
        actor: Optional[str] = None,
    ) -> Challenge:
        """Remove a challenge permanently."""
        challenges = ChallengeService._load(session)
        index = ChallengeService._find(challenges, challenge_id)
        removed = challenges.pop(index)
        ChallengeService._save(session, challenges)
        if activity is not None:
            action = (
                ActionType.PENDING_MATCH_DELETED
                if removed.status == ChallengeStatus.ACCEPTED
                else ActionType.CHALLENGE_DELETED
            )
            activity.record(
                action,
                actor,
                {"status": removed.status.value},
                removed.challenge_id,
                removed.to_dict(),
                None,
            )
        return removed

