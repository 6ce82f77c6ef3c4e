from __future__ import annotations


class QuestError(Exception):
    """Base class for knowledge-quest domain errors."""


class OutOfRangeDifficulty(QuestError, ValueError):
    def __init__(self, difficulty: object):
        super().__init__(f"difficulty must be an integer in [1, 5], got {difficulty!r}")
        self.difficulty = difficulty


class MalformedTrial(QuestError, ValueError):
    """A trial tally whose counts contradict each other."""


class OracleError(QuestError):
    """The language-model oracle failed or returned something unusable."""

    def __init__(self, operation: str, reason: str):
        super().__init__(f"{operation}: {reason}")
        self.operation = operation
        self.reason = reason


class SessionNotFound(QuestError, KeyError):
    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"session {self.session_id!r} not found"
