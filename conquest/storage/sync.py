"""Client-side view of the versioned collections and conflict remediation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from conquest.errors import ConflictError

from .store import get_store

if TYPE_CHECKING:
    from conquest.core.types import WriteResult

    from .store import VersionedDocumentStore

logger = logging.getLogger(__name__)

RELOAD = "reload"
OVERWRITE = "overwrite"
RESOLUTION_OPTIONS = (RELOAD, OVERWRITE)


class SyncSession:
    """Tracks the version each collection was read at and guards saves with it.

    A stale save raises ``ConflictError``. The caller then picks one of the
    two remediations: ``reload`` drops the local edits and re-reads the
    collection, ``overwrite`` writes the local copy without the version guard
    and discards the other party's change. Nothing is merged or retried.
    """

    def __init__(
        self,
        store: VersionedDocumentStore,
        expected_versions: Mapping[str, str | None] | None = None,
    ) -> None:
        """Initialize a session.

        ``expected_versions`` pins the version a remote client last read for
        some collections; saves of those collections are guarded by the pinned
        version instead of the one this session reads.
        """
        self.store = store
        self.pinned: dict[str, str | None] = dict(expected_versions or {})
        self.versions: dict[str, str | None] = {}

    def load(self, key: str, default: Any = None) -> Any:
        """Read a collection and remember its version."""
        payload = self.store.get(key)
        self.versions[key] = self.pinned.pop(key, payload["version"])
        data = payload["data"]
        return default if data is None else data

    def version(self, key: str) -> str | None:
        """Return the version the collection was last read or written at."""
        return self.versions.get(key)

    def save(self, key: str, data: Any) -> str:
        """Write a collection guarded by the version last seen."""
        expected = self.versions.get(key)
        result = self.store.set(key, data, expected_version=expected)
        if not result["success"]:
            logger.warning(
                "Conflict saving %s: expected %s, current %s",
                key,
                expected,
                result.get("currentVersion"),
            )
            raise ConflictError(
                key,
                result.get("expectedVersion", expected),
                result.get("currentVersion"),
            )
        self.versions[key] = result["version"]
        return result["version"]

    def reload(self, key: str, default: Any = None) -> Any:
        """Discard local edits and return the stored collection."""
        logger.info("Reloading %s, local changes discarded", key)
        return self.load(key, default)

    def overwrite(self, key: str, data: Any) -> str:
        """Write a collection without the version guard."""
        logger.warning("Overwriting %s regardless of intervening changes", key)
        result = self.store.set(
            key, data, expected_version=self.versions.get(key), force=True
        )
        self.versions[key] = result["version"]
        return result["version"]

    def resolve(self, key: str, choice: str, data: Any = None) -> Any:
        """Apply a remediation chosen after a ConflictError."""
        if choice == RELOAD:
            return self.reload(key)
        if choice == OVERWRITE:
            return self.overwrite(key, data)
        raise ValueError(
            f"Unknown resolution '{choice}', expected one of {RESOLUTION_OPTIONS}"
        )

    def save_all(self, collections: Mapping[str, Any]) -> dict[str, WriteResult]:
        """Save several collections independently.

        A conflict on one collection does not stop the others from being
        written; each outcome is reported per key.
        """
        results: dict[str, WriteResult] = {}
        for key, data in collections.items():
            try:
                version = self.save(key, data)
            except ConflictError as e:
                results[key] = {
                    "success": False,
                    "conflict": True,
                    "currentVersion": e.current_version,
                    "expectedVersion": e.expected_version,
                    "message": e.message,
                }
            else:
                results[key] = {"success": True, "version": version}
        return results


def session_for_request(payload: Mapping[str, Any] | None = None) -> SyncSession:
    """Open a session on the app's store for one API request.

    A request body may carry ``expectedVersions`` (collection key to the
    version the client last read) so that the write is rejected when the
    client's copy is stale.
    """
    expected = (payload or {}).get("expectedVersions") or {}
    if not isinstance(expected, Mapping):
        expected = {}
    return SyncSession(get_store(), expected)
