"""Service layer for building and recording match results."""

from __future__ import annotations

import dataclasses
import datetime
import logging
import uuid
from typing import TYPE_CHECKING, Any, Optional

from conquest.activity import ActionType
from conquest.core.constants import MATCHES_COLLECTION, TEAMS_COLLECTION
from conquest.core.ids import generate_match_id
from conquest.core.season import parse_match_date
from conquest.errors import NotFoundError, ValidationError
from conquest.teams.services import (
    MATCH_TYPES,
    index_players,
    load_roster,
    lookup_players,
    required_players,
)

from .models import SIDES, TEAM1, Match, MatchSubmission, SetScore
from .validation import validate_set_score

if TYPE_CHECKING:
    from conquest.activity import ActivityLog
    from conquest.storage.sync import SyncSession

logger = logging.getLogger(__name__)

SPLIT_SETS_MESSAGE = (
    "Sets are split 1-1. A third set (match tiebreak) is required. "
    "Enter 1-0 for the tiebreak winner."
)
UNSPLIT_SETS_MESSAGE = (
    "The selected winner won both sets. A third set should not be entered."
)
WRONG_WINNER_MESSAGE = (
    "The selected winner did not win 2 out of 3 sets. "
    "Please check your scores or select the correct winner."
)

UNTRACKED_FIELDS = ("timestamp", "updatedBy", "updatedAt")


def _check_metadata(submission: MatchSubmission) -> None:
    if submission.winner not in SIDES:
        raise ValidationError("Please select the match winner")
    if not submission.team1_id or not submission.team2_id:
        raise ValidationError("Both teams are required")
    if str(submission.team1_id) == str(submission.team2_id):
        raise ValidationError("A team cannot play against itself")
    if submission.match_type and submission.match_type not in MATCH_TYPES:
        raise ValidationError(f"Unknown match type '{submission.match_type}'")
    if submission.match_date and parse_match_date(submission.match_date) is None:
        raise ValidationError("Invalid match date")

    if submission.match_type:
        needed = required_players(submission.match_type)
        for side in (submission.team1_players, submission.team2_players):
            if side and len(side) != needed:
                raise ValidationError(
                    f"Each team must field exactly {needed} "
                    f"player{'s' if needed > 1 else ''}"
                )


def build_match_result(submission: MatchSubmission) -> Match:
    """Turn a winner selection and per-set scores into a canonical match.

    Sets 1 and 2 must be regular sets. A third set is required exactly when
    the first two were split, and the nominated winner must end up with two
    sets. Raises ``ValidationError`` on the first rule broken.
    """
    _check_metadata(submission)

    played = [
        (1, submission.set1_winner, submission.set1_loser),
        (2, submission.set2_winner, submission.set2_loser),
    ]
    for number, winner_score, loser_score in played:
        if winner_score is None or loser_score is None or (
            winner_score == 0 and loser_score == 0
        ):
            raise ValidationError(f"Please enter Set {number} scores")
        result = validate_set_score(winner_score, loser_score)
        if not result.valid:
            raise ValidationError(f"Set {number}: {result.error}")

    set1_winner_won = submission.set1_winner > submission.set1_loser
    set2_winner_won = submission.set2_winner > submission.set2_loser
    sets_split = set1_winner_won != set2_winner_won

    if sets_split and not submission.has_set3:
        raise ValidationError(SPLIT_SETS_MESSAGE)
    if not sets_split and submission.has_set3:
        raise ValidationError(UNSPLIT_SETS_MESSAGE)

    winner_sets = int(set1_winner_won) + int(set2_winner_won)
    is_match_tiebreak = False
    if submission.has_set3:
        result = validate_set_score(
            submission.set3_winner,
            submission.set3_loser,
            is_tiebreaker=submission.set3_is_tiebreaker,
            is_set3=True,
        )
        if not result.valid:
            raise ValidationError(f"Set 3: {result.error}")
        is_match_tiebreak = result.is_match_tiebreak
        played.append((3, submission.set3_winner, submission.set3_loser))
        winner_sets += int(submission.set3_winner > submission.set3_loser)

    if winner_sets < 2:
        raise ValidationError(WRONG_WINNER_MESSAGE)

    is_team1_winner = submission.winner == TEAM1
    sets = [
        SetScore(w, l) if is_team1_winner else SetScore(l, w) for _, w, l in played
    ]
    team1_sets = len([s for s in sets if s.winner == "team1"])
    team2_sets = len([s for s in sets if s.winner == "team2"])

    match_date = parse_match_date(submission.match_date) or datetime.date.today()
    return Match(
        id=str(uuid.uuid4()),
        match_id=submission.match_id or "",
        team1_id=str(submission.team1_id),
        team2_id=str(submission.team2_id),
        date=match_date.isoformat(),
        level=str(submission.level) if submission.level else None,
        match_type=submission.match_type,
        winner=submission.winner,
        sets=sets,
        team1_sets=team1_sets,
        team2_sets=team2_sets,
        team1_games=sum(s.team1 for s in sets),
        team2_games=sum(s.team2 for s in sets),
        set3_is_tiebreaker=submission.set3_is_tiebreaker,
        is_match_tiebreak=is_match_tiebreak,
        team1_players=[str(p) for p in submission.team1_players],
        team2_players=[str(p) for p in submission.team2_players],
        challenge_id=submission.challenge_id,
        notes=submission.notes,
        created_by=submission.created_by,
    )


class MatchService:
    """Service class for match-related operations."""

    @staticmethod
    def list_matches(session: SyncSession) -> list[Match]:
        """Return all recorded matches."""
        return [Match.from_dict(m) for m in session.load(MATCHES_COLLECTION, [])]

    @staticmethod
    def _check_lineups(session: SyncSession, match: Match) -> None:
        teams, players = load_roster(session.load(TEAMS_COLLECTION, {}))
        team_ids = {t.id for t in teams}
        for team_id in (match.team1_id, match.team2_id):
            if team_id not in team_ids:
                raise NotFoundError(f"Team '{team_id}' not found.")

        players_by_id = index_players(players)
        for team_id in (match.team1_id, match.team2_id):
            for player in lookup_players(match.players_of(team_id), players_by_id):
                if player.team_id != team_id:
                    raise ValidationError(f"{player.name} is not on this team.")

    @staticmethod
    def append_match(
        session: SyncSession, match: Match, raw_matches: Optional[list[Any]] = None
    ) -> Match:
        """Label a match if needed and save it into the matches collection."""
        if raw_matches is None:
            raw_matches = session.load(MATCHES_COLLECTION, [])
        if not match.match_id:
            year = parse_match_date(match.date).year
            match.match_id = generate_match_id(raw_matches, year)
        session.save(MATCHES_COLLECTION, list(raw_matches) + [match.to_dict()])
        return match

    @staticmethod
    def record_result(
        session: SyncSession,
        submission: MatchSubmission,
        activity: Optional[ActivityLog] = None,
        actor: Optional[str] = None,
    ) -> Match:
        """Validate a result and persist it as a new match."""
        match = build_match_result(submission)
        match.created_by = match.created_by or actor
        MatchService._check_lineups(session, match)
        MatchService.append_match(session, match)
        logger.info("Recorded match %s: %s", match.match_id, match.score_line())

        if activity is not None:
            activity.record(
                ActionType.MATCH_CREATED,
                actor,
                {
                    "matchId": match.match_id,
                    "team1Id": match.team1_id,
                    "team2Id": match.team2_id,
                    "scores": match.score_line(),
                    "level": match.level,
                },
                match.match_id,
                None,
                match.to_dict(),
            )
        return match

    @staticmethod
    def _find(raw_matches: list[Any], match_id: str) -> int:
        for index, raw in enumerate(raw_matches):
            match = Match.from_dict(raw)
            if match_id in (match.id, match.match_id):
                return index
        raise NotFoundError(f"Match '{match_id}' not found.")

    @staticmethod
    def edit_result(
        session: SyncSession,
        match_id: str,
        submission: MatchSubmission,
        activity: Optional[ActivityLog] = None,
        actor: Optional[str] = None,
    ) -> tuple[Match, dict[str, dict[str, Any]]]:
        """Re-validate a corrected result and replace the stored match.

        The match keeps its id, label, origin challenge and creator; a missing
        date keeps the stored one. Returns the match and
        ``{field: {"from": old, "to": new}}`` for every field that changed.
        """
        raw_matches = list(session.load(MATCHES_COLLECTION, []))
        index = MatchService._find(raw_matches, match_id)
        before = Match.from_dict(raw_matches[index])
        if not submission.match_date:
            submission = dataclasses.replace(submission, match_date=before.date)

        edited = build_match_result(submission)
        MatchService._check_lineups(session, edited)
        edited.id = before.id
        edited.match_id = before.match_id
        edited.challenge_id = before.challenge_id
        edited.created_by = before.created_by
        edited.created_at = before.created_at

        old = before.to_dict()
        new = edited.to_dict()
        diff = {
            key: {"from": old.get(key), "to": value}
            for key, value in new.items()
            if key not in UNTRACKED_FIELDS and old.get(key) != value
        }
        if not diff:
            return before, diff

        edited.updated_by = actor
        edited.updated_at = datetime.datetime.now(datetime.timezone.utc).isoformat()
        raw_matches[index] = edited.to_dict()
        session.save(MATCHES_COLLECTION, raw_matches)
        logger.info("Edited match %s: %s", edited.match_id, ", ".join(sorted(diff)))

        if activity is not None:
            activity.record(
                ActionType.MATCH_EDITED,
                actor,
                {"changes": diff},
                edited.match_id,
                old,
                raw_matches[index],
            )
        return edited, diff

    @staticmethod
    def delete_match(
        session: SyncSession,
        match_id: str,
        activity: Optional[ActivityLog] = None,
        actor: Optional[str] = None,
    ) -> Match:
        """Remove a match permanently."""
        raw_matches = list(session.load(MATCHES_COLLECTION, []))
        index = MatchService._find(raw_matches, match_id)
        removed = raw_matches.pop(index)
        session.save(MATCHES_COLLECTION, raw_matches)
        match = Match.from_dict(removed)
        logger.info("Deleted match %s", match.match_id)

        if activity is not None:
            activity.record(
                ActionType.MATCH_DELETED,
                actor,
                {
                    "matchId": match.match_id,
                    "team1Id": match.team1_id,
                    "team2Id": match.team2_id,
                    "scores": match.score_line(),
                },
                match.match_id,
                removed,
                None,
            )
        return match
