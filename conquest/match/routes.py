"""Routes for the match blueprint."""

from flask import current_app, g, jsonify, request

from conquest.activity import get_activity_log
from conquest.core.constants import (
    CAPTAINS_COLLECTION,
    MATCHES_COLLECTION,
    TEAMS_COLLECTION,
)
from conquest.errors import ValidationError
from conquest.notifications import notify_opposing_captains
from conquest.storage.sync import session_for_request
from conquest.teams.services import load_captains, load_roster
from conquest.utils import form_data, form_errors, json_body

from . import bp
from .forms import MatchResultForm, SetScoreForm
from .services import MatchService, build_match_result
from .validation import validate_set_score


def _result_form(payload):
    form = MatchResultForm(formdata=form_data(payload))
    if not form.validate():
        raise ValidationError(form_errors(form))
    return form


@bp.route("/validate-set", methods=["POST"])
def validate_set():
    """Check one set score."""
    form = SetScoreForm(formdata=form_data(json_body()))
    if not form.validate():
        raise ValidationError(form_errors(form))
    result = validate_set_score(
        form.score_a.data,
        form.score_b.data,
        is_tiebreaker=form.is_tiebreaker.data,
        is_set3=form.is_set3.data,
    )
    return jsonify(result.to_dict())


@bp.route("/build", methods=["POST"])
def build():
    """Validate a result without saving it."""
    form = _result_form(json_body())
    match = build_match_result(form.to_submission(created_by=g.actor))
    return jsonify({"match": match.to_dict()})


@bp.route("", methods=["GET"])
def list_matches():
    """Return all recorded matches."""
    session = session_for_request()
    matches = MatchService.list_matches(session)
    return jsonify(
        {
            "matches": [m.to_dict() for m in matches],
            "version": session.version(MATCHES_COLLECTION),
        }
    )


@bp.route("", methods=["POST"])
def record_match():
    """Validate and save a match result, then notify the opposing captain."""
    payload = json_body()
    form = _result_form(payload)
    session = session_for_request(payload)
    match = MatchService.record_result(
        session,
        form.to_submission(created_by=g.actor),
        activity=get_activity_log(),
        actor=g.actor,
    )

    teams, _ = load_roster(session.load(TEAMS_COLLECTION, {}))
    captains = load_captains(session.load(CAPTAINS_COLLECTION, []))
    notified = notify_opposing_captains(
        match, captains, teams, entered_by_team_id=payload.get("enteredByTeamId")
    )
    current_app.logger.info(f"Match {match.match_id} recorded by {g.actor}")
    return (
        jsonify(
            {
                "match": match.to_dict(),
                "version": session.version(MATCHES_COLLECTION),
                "notified": notified,
            }
        ),
        201,
    )


@bp.route("/<string:match_id>", methods=["PATCH"])
def edit_match(match_id):
    """Correct a recorded result; the full result is validated again."""
    payload = json_body()
    form = _result_form(payload)
    session = session_for_request(payload)
    match, diff = MatchService.edit_result(
        session,
        match_id,
        form.to_submission(created_by=g.actor),
        activity=get_activity_log(),
        actor=g.actor,
    )
    return jsonify(
        {
            "match": match.to_dict(),
            "changes": diff,
            "version": session.version(MATCHES_COLLECTION),
        }
    )


@bp.route("/<string:match_id>", methods=["DELETE"])
def delete_match(match_id):
    """Delete a match permanently."""
    payload = request.get_json(silent=True) or {}
    session = session_for_request(payload)
    removed = MatchService.delete_match(
        session, match_id, activity=get_activity_log(), actor=g.actor
    )
    current_app.logger.warning(f"Match {removed.match_id} deleted by {g.actor}")
    return jsonify(
        {"deleted": removed.id, "version": session.version(MATCHES_COLLECTION)}
    )
