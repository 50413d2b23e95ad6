"""Advisory import lock shared between clients."""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING

from conquest.core.constants import IMPORT_LOCK_KEY

if TYPE_CHECKING:
    from conquest.core.types import ImportLock

    from .store import VersionedDocumentStore


def set_import_lock(
    store: VersionedDocumentStore, holder: str, operation: str
) -> ImportLock:
    """Announce that ``holder`` is running a bulk ``operation``.

    The lock never blocks writes; other clients only read it to warn their user.
    """
    lock: ImportLock = {
        "holder": holder,
        "operation": operation,
        "lockedAt": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    }
    store.set(IMPORT_LOCK_KEY, lock, force=True)
    return lock


def get_import_lock(store: VersionedDocumentStore) -> ImportLock | None:
    """Return the current lock, if any."""
    return store.get(IMPORT_LOCK_KEY)["data"] or None


def clear_import_lock(store: VersionedDocumentStore) -> None:
    """Remove the lock."""
    store.set(IMPORT_LOCK_KEY, None, force=True)
