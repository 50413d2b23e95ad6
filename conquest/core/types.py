"""Core data types for the conquest application."""

from typing import Any, Optional, TypedDict


class VersionedPayload(TypedDict):
    """A collection read from the document store."""

    data: Any
    version: Optional[str]


class _WriteResultBase(TypedDict):
    success: bool


class WriteResult(_WriteResultBase, total=False):
    """Outcome of a versioned write."""

    version: str
    conflict: bool
    currentVersion: Optional[str]
    expectedVersion: Optional[str]
    message: str


class ImportLock(TypedDict):
    """Advisory marker announcing a bulk operation."""

    holder: str
    operation: str
    lockedAt: str
