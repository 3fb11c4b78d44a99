"""Single JSON documents stored as objects, updated by read-modify-write."""

import json
from typing import Any, Callable

from utils.object_store import ObjectNotFoundError, VersionConflictError


# Returned by an update() mutator to leave the stored document untouched
SKIP_WRITE = object()


class DocumentUpdateError(Exception):
    """Raised when an update keeps conflicting with concurrent writers."""


class JsonDocument:
    """
    A JSON object stored under one key, with optimistic concurrency.

    Reads return the stored ETag as a version token. With conditional writes on,
    a write only succeeds if the object still carries that token (or still does
    not exist), and update() re-runs the whole read-modify-write on conflict.
    With conditional writes off, the last writer wins for the whole document.
    """

    def __init__(
        self,
        store,
        bucket: str,
        key: str,
        conditional_writes: bool = True,
        max_attempts: int = 5,
    ):
        self.store = store
        self.bucket = bucket
        self.key = key
        self.conditional_writes = conditional_writes
        self.max_attempts = max(1, max_attempts)

    def read(self) -> tuple[dict, str | None]:
        """
        Read the document.

        Returns:
            Tuple of (value, version). A missing or empty object reads as ({}, None).
        """
        try:
            data, version = self.store.get_versioned(self.bucket, self.key)
        except ObjectNotFoundError:
            return {}, None

        if not data.strip():
            return {}, version

        value = json.loads(data)
        if value is None:
            return {}, version
        if not isinstance(value, dict):
            raise ValueError(f"Document {self.bucket}/{self.key} is not a JSON object")
        return value, version

    def write(self, value: dict, version: str | None = None) -> str:
        """Write the document, conditionally on `version` when enabled."""
        data = json.dumps(value, sort_keys=True).encode("utf-8")
        if not self.conditional_writes:
            return self.store.put(self.bucket, self.key, data, "application/json")
        return self.store.put(
            self.bucket,
            self.key,
            data,
            "application/json",
            if_match=version,
            if_none_match=version is None,
        )

    def update(self, mutate: Callable[[dict], Any]) -> Any:
        """
        Apply `mutate` to the current value and write it back.

        `mutate` edits the dict in place and returns a result for the caller.
        Returning SKIP_WRITE skips the write.

        Raises:
            DocumentUpdateError: If every attempt hit a version conflict
        """
        for attempt in range(1, self.max_attempts + 1):
            value, version = self.read()
            result = mutate(value)
            if result is SKIP_WRITE:
                return None
            try:
                self.write(value, version)
                return result
            except VersionConflictError:
                print(
                    f"⚠️ Conflict writing {self.bucket}/{self.key} "
                    f"(attempt {attempt}/{self.max_attempts}), retrying"
                )

        raise DocumentUpdateError(
            f"Gave up updating {self.bucket}/{self.key} after {self.max_attempts} conflicting writes"
        )
