"""Versioned document storage with optimistic concurrency.

Every shared collection (teams, matches, bonuses, ...) lives in a single
document holding the JSON-serialized payload and a version stamp. A write is
accepted only when the caller's expected version matches the stored one; the
store never merges and never retries.
"""

from __future__ import annotations

import datetime
import json
import threading
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore
from flask import current_app
from google.api_core import exceptions as google_exceptions

from conquest.core.constants import DATA_DOCUMENT_ID
from conquest.errors import StorageError

if TYPE_CHECKING:
    from flask import Flask
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

    from conquest.core.types import VersionedPayload, WriteResult

STORE_EXTENSION_KEY = "conquest_store"


def new_version(previous: str | None = None) -> str:
    """Return a UTC ISO-8601 version stamp strictly later than ``previous``."""
    now = datetime.datetime.now(datetime.timezone.utc)
    if previous:
        try:
            last = datetime.datetime.fromisoformat(previous)
        except ValueError:
            last = None
        if last is not None and last.tzinfo is not None and now <= last:
            now = last + datetime.timedelta(microseconds=1)
    return now.isoformat()


def check_version(
    collection: str,
    current_version: str | None,
    expected_version: str | None,
    force: bool = False,
) -> WriteResult | None:
    """Return a conflict result when a guarded write is stale, else None."""
    if force or current_version == expected_version:
        return None
    return {
        "success": False,
        "conflict": True,
        "currentVersion": current_version,
        "expectedVersion": expected_version,
        "message": (
            f"'{collection}' has been updated by another user. "
            "Reload to see the latest changes or overwrite them."
        ),
    }


def _serialize(data: Any) -> str:
    try:
        return json.dumps(data)
    except (TypeError, ValueError) as e:
        raise StorageError(f"Payload could not be serialized: {e}") from e


def _deserialize(raw: Any) -> Any:
    if isinstance(raw, str):
        return json.loads(raw)
    return raw


class VersionedDocumentStore:
    """Interface shared by the storage backends."""

    def get(self, key: str) -> VersionedPayload:
        """Return the collection payload and its version."""
        raise NotImplementedError

    def set(
        self,
        key: str,
        data: Any,
        expected_version: str | None = None,
        force: bool = False,
    ) -> WriteResult:
        """Write ``data`` if ``expected_version`` is current (or ``force``)."""
        raise NotImplementedError

    def delete(self, key: str) -> None:
        """Remove a collection document."""
        raise NotImplementedError


class MemoryDocumentStore(VersionedDocumentStore):
    """Process-local store used for tests and local development."""

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._documents: dict[str, dict[str, str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> VersionedPayload:
        """Return the collection payload and its version."""
        with self._lock:
            document = self._documents.get(key)
        if document is None:
            return {"data": None, "version": None}
        return {
            "data": _deserialize(document["data"]),
            "version": document["updatedAt"],
        }

    def set(
        self,
        key: str,
        data: Any,
        expected_version: str | None = None,
        force: bool = False,
    ) -> WriteResult:
        """Write ``data`` if ``expected_version`` is current (or ``force``)."""
        serialized = _serialize(data)
        with self._lock:
            current = self._documents.get(key)
            current_version = current["updatedAt"] if current else None
            conflict = check_version(key, current_version, expected_version, force)
            if conflict:
                return conflict
            version = new_version(current_version)
            self._documents[key] = {"data": serialized, "updatedAt": version}
        return {"success": True, "version": version}

    def delete(self, key: str) -> None:
        """Remove a collection document."""
        with self._lock:
            self._documents.pop(key, None)


def _write_if_current(
    transaction: Transaction,
    doc_ref: DocumentReference,
    collection: str,
    serialized: str,
    expected_version: str | None,
    force: bool,
) -> WriteResult:
    """Compare versions and write inside a single Firestore transaction."""
    snapshot = doc_ref.get(transaction=transaction)
    current_version = None
    if snapshot.exists:
        current_version = (snapshot.to_dict() or {}).get("updatedAt")

    conflict = check_version(collection, current_version, expected_version, force)
    if conflict:
        return conflict

    version = new_version(current_version)
    transaction.set(doc_ref, {"data": serialized, "updatedAt": version})
    return {"success": True, "version": version}


class FirestoreDocumentStore(VersionedDocumentStore):
    """Store backed by one Firestore document per collection."""

    def __init__(self, db: Client) -> None:
        """Initialize the store with a Firestore client."""
        self.db = db

    def _doc_ref(self, key: str) -> DocumentReference:
        return self.db.collection(key).document(DATA_DOCUMENT_ID)

    def get(self, key: str) -> VersionedPayload:
        """Return the collection payload and its version."""
        try:
            snapshot = self._doc_ref(key).get()
        except google_exceptions.GoogleAPICallError as e:
            raise StorageError(f"Failed to read '{key}': {e}") from e

        if not snapshot.exists:
            return {"data": None, "version": None}
        raw = snapshot.to_dict() or {}
        return {"data": _deserialize(raw.get("data")), "version": raw.get("updatedAt")}

    def set(
        self,
        key: str,
        data: Any,
        expected_version: str | None = None,
        force: bool = False,
    ) -> WriteResult:
        """Write ``data`` if ``expected_version`` is current (or ``force``)."""
        serialized = _serialize(data)
        transaction = self.db.transaction()
        try:
            return firestore.transactional(_write_if_current)(
                transaction,
                self._doc_ref(key),
                key,
                serialized,
                expected_version,
                force,
            )
        except google_exceptions.GoogleAPICallError as e:
            raise StorageError(f"Failed to write '{key}': {e}") from e

    def delete(self, key: str) -> None:
        """Remove a collection document."""
        try:
            self._doc_ref(key).delete()
        except google_exceptions.GoogleAPICallError as e:
            raise StorageError(f"Failed to delete '{key}': {e}") from e


def init_store(app: Flask) -> VersionedDocumentStore:
    """Create the configured store and attach it to the app."""
    backend = app.config.get("STORE_BACKEND", "firestore")
    if backend == "memory":
        store: VersionedDocumentStore = MemoryDocumentStore()
    elif backend == "firestore":
        store = FirestoreDocumentStore(firestore.client())
    else:
        raise ValueError(f"Unknown STORE_BACKEND: {backend}")
    app.extensions[STORE_EXTENSION_KEY] = store
    return store


def get_store() -> VersionedDocumentStore:
    """Return the store of the current app."""
    return current_app.extensions[STORE_EXTENSION_KEY]
