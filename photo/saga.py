"""Compensating actions for a batch that can fail part way through."""

import traceback
from dataclasses import dataclass
from typing import Callable


@dataclass
class Compensation:
    """A named undo action registered by a batch step."""

    name: str
    action: Callable[[], None]


class Saga:
    """
    Ordered list of compensating actions.

    Actions run newest first. Every action must be idempotent: compensate() may
    be called on steps whose side effect never happened, and a failing action
    does not stop the remaining ones.
    """

    def __init__(self, name: str = "batch"):
        self.name = name
        self.compensations: list[Compensation] = []
        self.compensated = False

    def register(self, name: str, action: Callable[[], None]) -> None:
        self.compensations.append(Compensation(name, action))

    def compensate(self) -> list[tuple[str, Exception]]:
        """
        Run every registered compensation once.

        Returns:
            List of (name, error) for compensations that failed
        """
        if self.compensated:
            return []
        self.compensated = True

        print(f"↩️ Rolling back {self.name}: {len(self.compensations)} compensation(s)")
        failures = []
        for compensation in reversed(self.compensations):
            try:
                compensation.action()
            except Exception as e:
                print(f"❌ Compensation {compensation.name} failed: {e}")
                traceback.print_exc()
                failures.append((compensation.name, e))
        return failures
