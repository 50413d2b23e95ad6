"""Best-effort audit trail of data changes."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any

from flask import current_app

from conquest.core.constants import ACTIVITY_LOGS_COLLECTION

if TYPE_CHECKING:
    from flask import Flask
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger("conquest.activity")

ACTIVITY_EXTENSION_KEY = "conquest_activity"


class ActionType:
    """Action labels recorded in the activity log."""

    MATCH_CREATED = "match_created"
    MATCH_EDITED = "match_edited"
    MATCH_DELETED = "match_deleted"

    CHALLENGE_CREATED = "challenge_created"
    CHALLENGE_ACCEPTED = "challenge_accepted"
    CHALLENGE_DECLINED = "challenge_declined"
    CHALLENGE_DELETED = "challenge_deleted"
    PENDING_MATCH_EDITED = "pending_match_edited"
    PENDING_MATCH_DELETED = "pending_match_deleted"

    COLLECTION_OVERWRITTEN = "collection_overwritten"
    IMPORT_LOCK_SET = "import_lock_set"
    IMPORT_LOCK_CLEARED = "import_lock_cleared"


def create_log_entry(
    action: str,
    user: str | None,
    details: Any,
    entity_id: str | None = None,
    before: Any = None,
    after: Any = None,
) -> dict[str, Any]:
    """Build an activity log entry."""
    return {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "action": action,
        "user": user or "anonymous",
        "details": details,
        "entityId": entity_id,
        "before": before,
        "after": after,
    }


class ActivityLog:
    """Writes activity entries to the log and, when configured, to Firestore.

    Recording never raises: a failure to persist an entry is logged and the
    caller's operation carries on.
    """

    def __init__(self, db: Client | None = None) -> None:
        """Initialize the log with an optional Firestore client."""
        self.db = db

    def record(
        self,
        action: str,
        user: str | None,
        details: Any,
        entity_id: str | None = None,
        before: Any = None,
        after: Any = None,
    ) -> dict[str, Any]:
        """Record one action and return the entry."""
        entry = create_log_entry(action, user, details, entity_id, before, after)
        suffix = f" (ID: {entity_id})" if entity_id else ""
        logger.info("%s performed %s%s", entry["user"], action, suffix)

        if self.db is not None:
            try:
                self.db.collection(ACTIVITY_LOGS_COLLECTION).add(entry)
            except Exception as e:
                logger.error("Failed to persist activity log entry: %s", e)
        return entry


def init_activity_log(app: Flask, db: Client | None = None) -> ActivityLog:
    """Attach an activity log to the app."""
    activity = ActivityLog(db)
    app.extensions[ACTIVITY_EXTENSION_KEY] = activity
    return activity


def get_activity_log() -> ActivityLog:
    """Return the activity log of the current app."""
    return current_app.extensions[ACTIVITY_EXTENSION_KEY]
