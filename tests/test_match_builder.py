"""Tests for building and recording match results."""

import dataclasses
import unittest
from unittest.mock import MagicMock

from conquest.activity import ActionType
from conquest.errors import NotFoundError, ValidationError
from conquest.match.models import MatchSubmission
from conquest.match.services import MatchService, build_match_result
from conquest.storage.store import MemoryDocumentStore
from conquest.storage.sync import SyncSession
from tests.helpers import default_roster, roster_payload


def submission(**overrides):
    base = MatchSubmission(
        winner="team1",
        set1_winner=6,
        set1_loser=4,
        set2_winner=6,
        set2_loser=3,
        team1_id="A",
        team2_id="B",
        match_date="2025-11-10",
        level="7.0",
        match_type="doubles",
    )
    return dataclasses.replace(base, **overrides)


class BuildMatchResultTestCase(unittest.TestCase):
    """Test case for build_match_result."""

    def test_straight_sets(self):
        """A two-set win is summed into sets and games."""
        match = build_match_result(submission())
        self.assertEqual(match.team1_sets, 2)
        self.assertEqual(match.team2_sets, 0)
        self.assertEqual(match.team1_games, 12)
        self.assertEqual(match.team2_games, 7)
        self.assertEqual(match.winner_team_id, "A")
        self.assertEqual(len(match.sets), 2)

    def test_split_sets_with_match_tiebreak(self):
        """6-4, 3-6, 1-0 is accepted and flagged as a match tiebreak."""
        match = build_match_result(
            submission(
                set1_winner=6,
                set1_loser=4,
                set2_winner=3,
                set2_loser=6,
                set3_winner=1,
                set3_loser=0,
            )
        )
        self.assertTrue(match.is_match_tiebreak)
        self.assertEqual(match.team1_sets, 2)
        self.assertEqual(match.team2_sets, 1)
        self.assertEqual(match.score_line(), "6-4, 3-6, 1-0")

    def test_third_set_after_straight_sets_is_rejected(self):
        """6-0, 6-1 with a third set entered is rejected."""
        with self.assertRaises(ValidationError) as cm:
            build_match_result(
                submission(
                    set1_winner=6,
                    set1_loser=0,
                    set2_winner=6,
                    set2_loser=1,
                    set3_winner=6,
                    set3_loser=0,
                )
            )
        self.assertEqual(
            cm.exception.message,
            "The selected winner won both sets. A third set should not be entered.",
        )

    def test_split_sets_require_third_set(self):
        """A 1-1 split without a third set is rejected."""
        with self.assertRaises(ValidationError) as cm:
            build_match_result(submission(set2_winner=4, set2_loser=6))
        self.assertIn("Sets are split 1-1", cm.exception.message)

    def test_set_number_prefixes_error(self):
        """The failing set is named in the error."""
        with self.assertRaises(ValidationError) as cm:
            build_match_result(submission(set2_winner=6, set2_loser=5))
        self.assertTrue(cm.exception.message.startswith("Set 2: Invalid tennis score"))

    def test_winner_must_take_two_sets(self):
        """A nominated winner who lost the decider is rejected."""
        with self.assertRaises(ValidationError) as cm:
            build_match_result(
                submission(
                    set2_winner=3,
                    set2_loser=6,
                    set3_winner=0,
                    set3_loser=1,
                )
            )
        self.assertIn("did not win 2 out of 3 sets", cm.exception.message)

    def test_winner_who_lost_both_sets_is_rejected(self):
        """Scores entered from the loser's side do not pass."""
        with self.assertRaises(ValidationError):
            build_match_result(
                submission(set1_winner=4, set1_loser=6, set2_winner=3, set2_loser=6)
            )

    def test_ten_point_third_set(self):
        """A flagged third set is validated as a 10-point tiebreak."""
        match = build_match_result(
            submission(
                set2_winner=5,
                set2_loser=7,
                set3_winner=10,
                set3_loser=7,
                set3_is_tiebreaker=True,
            )
        )
        self.assertFalse(match.is_match_tiebreak)
        self.assertEqual(match.team1_games, 21)

        with self.assertRaises(ValidationError) as cm:
            build_match_result(
                submission(
                    set2_winner=5,
                    set2_loser=7,
                    set3_winner=10,
                    set3_loser=9,
                    set3_is_tiebreaker=True,
                )
            )
        self.assertEqual(
            cm.exception.message, "Set 3: Tiebreaker must be won by 2+ points"
        )

    def test_team2_winner_scores_are_reoriented(self):
        """Winner-perspective scores are turned into team1/team2 scores."""
        match = build_match_result(submission(winner="team2"))
        self.assertEqual(match.sets[0].team1, 4)
        self.assertEqual(match.sets[0].team2, 6)
        self.assertEqual(match.team2_sets, 2)
        self.assertEqual(match.team1_games, 7)
        self.assertEqual(match.winner_team_id, "B")

    def test_metadata_checks(self):
        """Teams, winner and lineups are checked before any score."""
        with self.assertRaises(ValidationError):
            build_match_result(submission(winner=""))
        with self.assertRaises(ValidationError):
            build_match_result(submission(team2_id="A"))
        with self.assertRaises(ValidationError):
            build_match_result(submission(team1_players=["a1"]))
        with self.assertRaises(ValidationError):
            build_match_result(submission(set1_winner=0, set1_loser=0))

    def test_round_trip_through_stored_shape(self):
        """A built match survives its stored shape."""
        match = build_match_result(
            submission(set2_winner=3, set2_loser=6, set3_winner=1, set3_loser=0)
        )
        stored = match.to_dict()
        self.assertEqual(stored["set3Team1"], 1)
        self.assertEqual(stored["set3Team2"], 0)
        again = type(match).from_dict(stored)
        self.assertEqual(again.sets, match.sets)
        self.assertEqual(again.team1_sets, 2)


class MatchServiceTestCase(unittest.TestCase):
    """Test case for recording, editing and deleting matches."""

    def setUp(self):
        """Set up a store holding the default roster and one match."""
        self.store = MemoryDocumentStore()
        teams, players = default_roster()
        self.store.set("teams", roster_payload(teams, players))
        self.activity = MagicMock()
        self.lineups = {"team1_players": ["a1", "a2"], "team2_players": ["b1", "b2"]}
        self.match = MatchService.record_result(
            self.session(), submission(**self.lineups), actor="Captain A"
        )

    def session(self):
        return SyncSession(self.store)

    def stored(self):
        return self.store.get("matches")["data"]

    def test_edit_result(self):
        """An edit is validated again and keeps the match identity."""
        edited, diff = MatchService.edit_result(
            self.session(),
            self.match.match_id,
            submission(set2_winner=7, set2_loser=5, **self.lineups),
            self.activity,
            "Director",
        )
        self.assertEqual(edited.id, self.match.id)
        self.assertEqual(edited.match_id, "MATCH-2025-001")
        self.assertEqual(edited.created_by, "Captain A")
        self.assertEqual(edited.updated_by, "Director")
        self.assertEqual(diff["set2Team1"], {"from": 6, "to": 7})
        self.assertEqual(diff["team2Games"], {"from": 7, "to": 9})
        self.assertNotIn("timestamp", diff)

        (stored,) = self.stored()
        self.assertEqual(stored["set2Team2"], 5)
        self.assertEqual(stored["updatedBy"], "Director")
        self.activity.record.assert_called_once()
        self.assertEqual(
            self.activity.record.call_args[0][0], ActionType.MATCH_EDITED
        )

    def test_edit_without_changes_is_not_saved(self):
        """Resubmitting the same result changes nothing."""
        version = self.store.get("matches")["version"]
        _, diff = MatchService.edit_result(
            self.session(), self.match.id, submission(**self.lineups), self.activity
        )
        self.assertEqual(diff, {})
        self.assertEqual(self.store.get("matches")["version"], version)
        self.activity.record.assert_not_called()

    def test_edit_keeps_date_when_omitted(self):
        """A correction without a date keeps the recorded date."""
        edited, _ = MatchService.edit_result(
            self.session(),
            self.match.id,
            submission(
                match_date=None,
                winner="team2",
                set2_winner=6,
                set2_loser=1,
                **self.lineups,
            ),
        )
        self.assertEqual(edited.date, "2025-11-10")
        self.assertEqual(edited.winner_team_id, "B")

    def test_invalid_edit_leaves_match_untouched(self):
        """A rejected correction is never partially applied."""
        version = self.store.get("matches")["version"]
        with self.assertRaises(ValidationError):
            MatchService.edit_result(
                self.session(),
                self.match.id,
                submission(set2_winner=3, set2_loser=6, **self.lineups),
            )
        self.assertEqual(self.store.get("matches")["version"], version)
        self.assertEqual(self.stored()[0]["set2Team1"], 6)

    def test_delete_match(self):
        """A deleted match is removed and logged with its last state."""
        removed = MatchService.delete_match(
            self.session(), "MATCH-2025-001", self.activity, "Director"
        )
        self.assertEqual(removed.id, self.match.id)
        self.assertEqual(self.stored(), [])
        args = self.activity.record.call_args[0]
        self.assertEqual(args[0], ActionType.MATCH_DELETED)
        self.assertEqual(args[4]["id"], self.match.id)
        self.assertIsNone(args[5])

        with self.assertRaises(NotFoundError):
            MatchService.delete_match(self.session(), "MATCH-2025-001")


if __name__ == "__main__":
    unittest.main()
