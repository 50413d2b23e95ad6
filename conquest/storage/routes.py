"""Routes for the raw versioned collections and the import lock."""

from flask import current_app, g, jsonify, request

from conquest.activity import ActionType, get_activity_log
from conquest.core.constants import TEAMS_COLLECTION, VERSIONED_COLLECTIONS
from conquest.errors import ConflictError, NotFoundError, ValidationError
from conquest.teams.services import check_roster_sizes, load_roster
from conquest.utils import json_body

from . import bp
from .locks import clear_import_lock, get_import_lock, set_import_lock
from .store import get_store


def _check_collection(key):
    if key not in VERSIONED_COLLECTIONS:
        raise NotFoundError(f"Unknown collection '{key}'.")


def _check_payload(key, data):
    if key != TEAMS_COLLECTION:
        return
    if not isinstance(data, dict):
        raise ValidationError("The teams collection must be an object.")
    check_roster_sizes(*load_roster(data))


def _force_requested():
    return request.args.get("force", "").lower() in ["true", "1", "t"]


@bp.route("/collections/<string:key>", methods=["GET"])
def get_collection(key):
    """Return a collection and the version it was read at."""
    _check_collection(key)
    return jsonify(get_store().get(key))


@bp.route("/collections/<string:key>", methods=["PUT"])
def put_collection(key):
    """Write a collection guarded by the caller's expected version."""
    _check_collection(key)
    payload = json_body()
    if "data" not in payload:
        raise ValidationError("Missing 'data'.")
    _check_payload(key, payload["data"])
    expected = payload.get("expectedVersion")
    force = _force_requested()

    result = get_store().set(
        key, payload["data"], expected_version=expected, force=force
    )
    if not result["success"]:
        raise ConflictError(key, expected, result.get("currentVersion"))

    if force:
        get_activity_log().record(
            ActionType.COLLECTION_OVERWRITTEN,
            g.actor,
            {"collection": key, "expectedVersion": expected},
        )
    current_app.logger.info(f"Saved collection {key} at {result['version']}")
    return jsonify(result)


@bp.route("/collections/<string:key>", methods=["DELETE"])
def delete_collection(key):
    """Remove a collection document."""
    _check_collection(key)
    get_store().delete(key)
    current_app.logger.warning(f"Collection {key} deleted by {g.actor}")
    return jsonify({"success": True})


@bp.route("/import-lock", methods=["GET"])
def read_import_lock():
    """Return the advisory import lock."""
    return jsonify({"lock": get_import_lock(get_store())})


@bp.route("/import-lock", methods=["PUT"])
def write_import_lock():
    """Announce a bulk operation."""
    payload = json_body()
    operation = payload.get("operation")
    if not operation:
        raise ValidationError("Missing 'operation'.")
    holder = payload.get("holder") or g.actor or "anonymous"
    lock = set_import_lock(get_store(), holder, operation)
    get_activity_log().record(ActionType.IMPORT_LOCK_SET, holder, lock)
    return jsonify({"lock": lock})


@bp.route("/import-lock", methods=["DELETE"])
def remove_import_lock():
    """Clear the advisory import lock."""
    clear_import_lock(get_store())
    get_activity_log().record(ActionType.IMPORT_LOCK_CLEARED, g.actor, {})
    return jsonify({"lock": None})
