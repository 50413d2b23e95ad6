"""The leaderboard blueprint."""

from flask import Blueprint

bp = Blueprint("leaderboard", __name__, url_prefix="/api/leaderboard")

from . import routes  # noqa: E402

__all__ = ["routes"]
