"""Routes for the leaderboard blueprint."""

from flask import current_app, jsonify

from conquest.core.season import (
    late_months_from_config,
    scoring_months_from_config,
    tournament_now,
)
from conquest.storage.sync import session_for_request

from . import bp
from .services import LeaderboardService


@bp.route("", methods=["GET"])
def leaderboard():
    """Return the ranked standings."""
    config = current_app.config
    rows = LeaderboardService.standings(
        session_for_request(),
        tournament_now(config),
        scoring_months_from_config(config),
        late_months_from_config(config),
    )
    return jsonify({"leaderboard": [row.to_dict() for row in rows]})


@bp.route("/bonus/<string:team_id>", methods=["GET"])
def team_bonus(team_id):
    """Return a team's bonus audit."""
    config = current_app.config
    breakdown = LeaderboardService.team_bonus(
        session_for_request(),
        team_id,
        tournament_now(config),
        scoring_months_from_config(config),
    )
    return jsonify(breakdown.to_dict())
