"""Routes for the challenge blueprint."""

from flask import current_app, g, jsonify, request

from conquest.activity import get_activity_log
from conquest.core.constants import CHALLENGES_COLLECTION, MATCHES_COLLECTION
from conquest.core.season import tournament_now
from conquest.errors import ValidationError
from conquest.match.forms import ResultScoresForm
from conquest.storage.sync import session_for_request
from conquest.utils import form_data, form_errors, json_body

from . import bp
from .forms import AcceptChallengeForm, CreateChallengeForm
from .services import ChallengeService, is_overdue


def _validated(form_class, payload):
    form = form_class(formdata=form_data(payload))
    if not form.validate():
        raise ValidationError(form_errors(form))
    return form


def _challenge_json(challenge, today):
    data = challenge.to_dict()
    data["overdue"] = is_overdue(challenge, today)
    return data


def _response(session, challenge, status=200, **extra):
    today = tournament_now(current_app.config).date()
    body = {
        "challenge": _challenge_json(challenge, today),
        "version": session.version(CHALLENGES_COLLECTION),
    }
    body.update(extra)
    return jsonify(body), status


@bp.route("", methods=["GET"])
def list_challenges():
    """Return challenges, optionally filtered with ``?status=``."""
    session = session_for_request()
    today = tournament_now(current_app.config).date()
    challenges = ChallengeService.list_challenges(session, request.args.get("status"))
    return jsonify(
        {
            "challenges": [_challenge_json(c, today) for c in challenges],
            "version": session.version(CHALLENGES_COLLECTION),
        }
    )


@bp.route("", methods=["POST"])
def create_challenge():
    """Issue a challenge."""
    payload = json_body()
    form = _validated(CreateChallengeForm, payload)
    session = session_for_request(payload)
    challenge = ChallengeService.create(
        session, activity=get_activity_log(), actor=g.actor, **form.to_fields()
    )
    return _response(session, challenge, 201)


@bp.route("/<string:challenge_id>/accept", methods=["POST"])
def accept_challenge(challenge_id):
    """Accept a challenge."""
    payload = json_body()
    form = _validated(AcceptChallengeForm, payload)
    session = session_for_request(payload)
    challenge = ChallengeService.accept(
        session,
        challenge_id,
        form.team_id.data,
        form.accepted_date.data,
        form.accepted_level.data,
        form.challenged_players.data or [],
        activity=get_activity_log(),
        actor=g.actor,
    )
    return _response(session, challenge)


@bp.route("/<string:challenge_id>/decline", methods=["POST"])
def decline_challenge(challenge_id):
    """Decline a challenge."""
    payload = request.get_json(silent=True) or {}
    session = session_for_request(payload)
    challenge = ChallengeService.decline(
        session,
        challenge_id,
        payload.get("teamId"),
        activity=get_activity_log(),
        actor=g.actor,
    )
    return _response(session, challenge)


@bp.route("/<string:challenge_id>/complete", methods=["POST"])
def complete_challenge(challenge_id):
    """Record the result of an accepted challenge."""
    payload = json_body()
    form = _validated(ResultScoresForm, payload)
    session = session_for_request(payload)
    challenge, match = ChallengeService.complete(
        session,
        challenge_id,
        form.to_submission(created_by=g.actor),
        activity=get_activity_log(),
        actor=g.actor,
    )
    return _response(
        session,
        challenge,
        201,
        match=match.to_dict(),
        matchesVersion=session.version(MATCHES_COLLECTION),
    )


@bp.route("/<string:challenge_id>", methods=["PATCH"])
def edit_challenge(challenge_id):
    """Edit an accepted challenge."""
    payload = json_body()
    changes = {k: v for k, v in payload.items() if k != "expectedVersions"}
    session = session_for_request(payload)
    challenge, diff = ChallengeService.edit(
        session, challenge_id, changes, activity=get_activity_log(), actor=g.actor
    )
    return _response(session, challenge, changes=diff)


@bp.route("/<string:challenge_id>", methods=["DELETE"])
def delete_challenge(challenge_id):
    """Delete a challenge permanently."""
    payload = request.get_json(silent=True) or {}
    session = session_for_request(payload)
    removed = ChallengeService.delete(
        session, challenge_id, activity=get_activity_log(), actor=g.actor
    )
    current_app.logger.warning(f"Challenge {removed.challenge_id} deleted by {g.actor}")
    return jsonify(
        {"deleted": removed.id, "version": session.version(CHALLENGES_COLLECTION)}
    )
