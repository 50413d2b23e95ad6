"""Shared builders for tournament test data."""

import unittest

from conquest import create_app
from conquest.match.models import Match, SetScore
from conquest.teams.models import Player, PlayerStatus, Team

WINNING_SETS = [SetScore(6, 3), SetScore(6, 4)]


def make_player(
    player_id, team_id, gender="M", ntrp=3.5, status="active", dynamic=None
):
    return Player(
        id=player_id,
        first_name=f"First{player_id}",
        last_name=f"Last{player_id}",
        gender=gender,
        ntrp_rating=ntrp,
        dynamic_rating=dynamic,
        status=PlayerStatus(status),
        team_id=team_id,
    )


def make_team(team_id, name=None, **kwargs):
    return Team(id=team_id, name=name or f"Team {team_id}", **kwargs)


def make_match(
    team1_id,
    team2_id,
    date="2025-11-10",
    winner="team1",
    level="7.0",
    match_type="doubles",
    team1_players=None,
    team2_players=None,
    sets=None,
):
    sets = sets or WINNING_SETS
    if winner == "team2":
        sets = [SetScore(s.team2, s.team1) for s in sets]
    return Match(
        id=f"{team1_id}-{team2_id}-{date}",
        match_id="",
        team1_id=team1_id,
        team2_id=team2_id,
        date=date,
        level=level,
        match_type=match_type,
        winner=winner,
        sets=sets,
        team1_sets=len([s for s in sets if s.winner == "team1"]),
        team2_sets=len([s for s in sets if s.winner == "team2"]),
        team1_games=sum(s.team1 for s in sets),
        team2_games=sum(s.team2 for s in sets),
        team1_players=team1_players or [],
        team2_players=team2_players or [],
    )


def roster_payload(teams, players):
    return {
        "teams": [t.to_dict() for t in teams],
        "players": [p.to_dict() for p in players],
        "trades": [],
    }


def default_roster():
    """Two teams of four: a mixed team A and team B."""
    teams = [make_team("A", "Aces"), make_team("B", "Baseliners")]
    players = [
        make_player("a1", "A", "M", 3.5),
        make_player("a2", "A", "F", 3.5),
        make_player("a3", "A", "M", 4.0),
        make_player("a4", "A", "F", 3.0),
        make_player("b1", "B", "M", 3.5),
        make_player("b2", "B", "F", 3.5),
        make_player("b3", "B", "M", 4.5),
        make_player("b4", "B", "F", 3.0),
    ]
    return teams, players


class ApiTestCase(unittest.TestCase):
    """Base test case running the API against the in-memory store."""

    def setUp(self):
        """Set up a test client on a fresh app."""
        self.app = create_app({"TESTING": True})
        self.client = self.app.test_client()
        self.headers = {"X-Conquest-User": "Director"}

    def seed(self, key, data):
        """Write a collection and return its version."""
        response = self.client.put(
            f"/api/collections/{key}", json={"data": data}, headers=self.headers
        )
        self.assertEqual(response.status_code, 200, response.get_json())
        return response.get_json()["version"]

    def seed_roster(self):
        teams, players = default_roster()
        return self.seed("teams", roster_payload(teams, players))
