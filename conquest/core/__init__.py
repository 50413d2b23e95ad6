"""Core module for the conquest application."""

from .types import ImportLock, VersionedPayload, WriteResult

__all__ = ["ImportLock", "VersionedPayload", "WriteResult"]
