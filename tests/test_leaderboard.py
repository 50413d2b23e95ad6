"""Tests for leaderboard ranking."""

import unittest

from conquest.bonus.models import BonusBreakdown
from conquest.leaderboard.services import capped_bonus, rank_leaderboard, win_points
from conquest.match.models import SetScore
from tests.helpers import make_match, make_team

LATE = {"2026-01"}


def bonus(team_id, manual):
    return BonusBreakdown(team_id=team_id, months=[], manual=manual)


class WinPointsTestCase(unittest.TestCase):
    """Test case for match-win points."""

    def test_late_month_wins_are_doubled(self):
        """Wins in a late scoring month are worth 4 points."""
        self.assertEqual(win_points(make_match("A", "B", date="2025-12-31"), LATE), 2)
        self.assertEqual(win_points(make_match("A", "B", date="2026-01-05"), LATE), 4)


class CappedBonusTestCase(unittest.TestCase):
    """Test case for the bonus cap."""

    def test_cap_never_exceeds_quarter_of_win_points(self):
        """The applied bonus stays within 0 and 25% of win points."""
        for win in (0, 2, 4, 10, 18):
            for raw in (-5, 0, 0.5, 1, 3, 100):
                with self.subTest(win=win, raw=raw):
                    applied = capped_bonus(raw, win)
                    self.assertGreaterEqual(applied, 0)
                    self.assertLessEqual(applied, win * 0.25)
                    self.assertLessEqual(applied, max(0, raw))

    def test_no_wins_no_bonus(self):
        """A team without wins gets no bonus."""
        self.assertEqual(capped_bonus(8, 0), 0)


class RankLeaderboardTestCase(unittest.TestCase):
    """Test case for rank_leaderboard."""

    def setUp(self):
        """Set up four teams."""
        self.teams = [make_team(t) for t in ("A", "B", "C", "D")]

    def test_points_then_sets_then_games(self):
        """Ties on points fall back to sets won, then games won."""
        matches = [
            make_match("A", "B", sets=[SetScore(6, 0), SetScore(6, 0)]),
            make_match(
                "C",
                "D",
                sets=[SetScore(6, 4), SetScore(4, 6), SetScore(1, 0)],
            ),
        ]
        rows = rank_leaderboard(self.teams, matches, {}, LATE)
        self.assertEqual([r.team_id for r in rows], ["A", "C", "D", "B"])
        self.assertEqual(rows[0].total_points, 2)
        self.assertEqual(rows[0].games_won, 12)
        self.assertEqual(rows[1].sets_won, 2)
        self.assertEqual(rows[1].games_won, 11)
        self.assertEqual(rows[2].sets_won, 1)

    def test_bonus_is_capped(self):
        """A large bonus only adds a quarter of the win points."""
        matches = [
            make_match("A", "B", date="2026-01-10"),
            make_match("B", "A", date="2025-11-10"),
        ]
        breakdowns = {"A": bonus("A", 10), "B": bonus("B", 0.5)}
        ranked = rank_leaderboard(self.teams, matches, breakdowns, LATE)
        rows = {r.team_id: r for r in ranked}
        self.assertEqual(rows["A"].match_win_points, 4)
        self.assertEqual(rows["A"].bonus_points, 10)
        self.assertEqual(rows["A"].capped_bonus, 1)
        self.assertEqual(rows["A"].total_points, 5)
        self.assertEqual(rows["B"].capped_bonus, 0.5)
        self.assertEqual(rows["B"].total_points, 2.5)

    def test_full_tie_keeps_input_order(self):
        """Teams tied on every key keep their input order."""
        rows = rank_leaderboard(self.teams, [], {}, LATE)
        self.assertEqual([r.team_id for r in rows], ["A", "B", "C", "D"])
        self.assertEqual([r.rank for r in rows], [1, 2, 3, 4])

    def test_top_two_qualify(self):
        """Only the top two ranks qualify for the championship."""
        matches = [make_match("C", "A"), make_match("D", "B")]
        rows = rank_leaderboard(self.teams, matches, {}, LATE)
        qualified = [r.team_id for r in rows if r.championship_qualifying]
        self.assertEqual(qualified, ["C", "D"])

    def test_records(self):
        """Wins, losses and matches played are tallied."""
        matches = [
            make_match("A", "B"),
            make_match("A", "C", winner="team2"),
        ]
        rows = {r.team_id: r for r in rank_leaderboard(self.teams, matches, {}, LATE)}
        self.assertEqual((rows["A"].wins, rows["A"].losses), (1, 1))
        self.assertEqual(rows["A"].matches_played, 2)
        self.assertEqual(rows["C"].wins, 1)
        self.assertEqual(rows["B"].to_dict()["losses"], 1)


if __name__ == "__main__":
    unittest.main()
