"""Per-session cooldown for repeated visitor actions."""

from datetime import datetime, timedelta, timezone
from typing import Callable

from utils.documents import SKIP_WRITE, JsonDocument

DEFAULT_COOLDOWN = timedelta(minutes=10)


class RateLimitExceeded(Exception):
    """Raised by require() when a session is still cooling down."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RateLimiter:
    """
    Throttles a session that acted less than `cooldown` ago.

    The ledger is one JSON document mapping session id to the ISO-8601 time of
    its last permitted action. Entries are never expired.
    """

    def __init__(
        self,
        ledger: JsonDocument,
        cooldown: timedelta = DEFAULT_COOLDOWN,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.ledger = ledger
        self.cooldown = cooldown
        self.clock = clock

    @classmethod
    def from_settings(cls, settings, store) -> "RateLimiter":
        ledger = JsonDocument(
            store,
            settings.api_bucket,
            settings.ledger_key,
            conditional_writes=settings.conditional_writes,
            max_attempts=settings.write_attempts,
        )
        return cls(ledger, cooldown=timedelta(minutes=settings.cooldown_minutes))

    def check_and_record(self, session_id: str) -> bool:
        """
        Record an action for `session_id` unless it is still cooling down.

        Returns:
            True if the action is permitted (and recorded), False if throttled
        """
        now = self.clock()

        def apply(entries: dict) -> bool:
            last = _parse_timestamp(entries.get(session_id))
            if last is not None and last > now - self.cooldown:
                return SKIP_WRITE
            entries[session_id] = now.isoformat()
            return True

        permitted = bool(self.ledger.update(apply))
        if not permitted:
            print(f"⏳ Session {session_id} throttled (cooldown {self.cooldown})")
        return permitted

    def require(self, session_id: str) -> None:
        """
        Like check_and_record(), but raises when throttled.

        Raises:
            RateLimitExceeded: If the session acted within the cooldown
        """
        if not self.check_and_record(session_id):
            minutes = int(self.cooldown.total_seconds() // 60)
            raise RateLimitExceeded(
                f"permission denied: you must wait {minutes} minutes before requesting again"
            )
