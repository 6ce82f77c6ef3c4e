from __future__ import annotations

import json

import pytest

from quest_core import llm_bridge
from quest_core.store import InMemorySessionStore
from quest_core.types import (
    ArticulationResult,
    GauntletResult,
    LightningResult,
    TrialRecord,
)


def build_trial(
    *,
    articulation: float = 7.0,
    gauntlet: tuple[int, int] = (7, 10),
    lightning: tuple[int, int] = (14, 20),
    time_bonus: int = 0,
) -> TrialRecord:
    """Deterministic trial record from (correct, total) tallies."""

    g_ok, g_total = gauntlet
    l_ok, l_total = lightning
    return TrialRecord(
        articulation=ArticulationResult(score=articulation, text="my take", feedback="ok"),
        gauntlet=GauntletResult.from_answers([True] * g_ok + [False] * (g_total - g_ok)),
        lightning=LightningResult.from_answers(
            [True] * l_ok + [False] * (l_total - l_ok), time_bonus=time_bonus
        ),
    )


def trial_payload(
    *,
    articulation: float = 7.0,
    gauntlet: tuple[int, int] = (7, 10),
    lightning: tuple[int, int] = (14, 20),
    time_bonus: int = 0,
) -> dict:
    """Same shape as ``build_trial`` but in the API's camelCase JSON form."""

    g_ok, g_total = gauntlet
    l_ok, l_total = lightning
    return {
        "articulation": {"score": articulation, "text": "my take", "feedback": "ok"},
        "gauntlet": {"answers": [True] * g_ok + [False] * (g_total - g_ok)},
        "lightning": {
            "answers": [True] * l_ok + [False] * (l_total - l_ok),
            "timeBonus": time_bonus,
        },
    }


class FakeOracle:
    """Routes prompts to canned replies and records what was asked."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.fail: set[str] = set()
        self.evaluate_score = 8

    def __call__(self, system, user, *, json_mode, temperature, max_tokens=None) -> str:
        kind = self._kind(user)
        self.calls.append(kind)
        if kind in self.fail:
            raise RuntimeError(f"{kind} is down")
        if kind == "quiz":
            return json.dumps({"questions": [
                {"question": f"Q{i}?", "options": ["a", "b", "c", "d"], "correctAnswer": i % 4}
                for i in range(10)
            ] + [{"question": "broken", "options": [], "correctAnswer": 0}]})
        if kind == "lightning":
            return json.dumps({"statements": [
                {"statement": f"S{i}", "isTrue": i % 2 == 0} for i in range(20)
            ] + [{"statement": "no flag"}]})
        if kind == "evaluate":
            return json.dumps({"score": self.evaluate_score, "feedback": "Clear and accurate."})
        if kind == "categorize":
            return json.dumps({"category": "sciences", "connections": ["Chemistry", "Biology"]})
        if kind == "vault":
            return "# Vault entry\n\nSummary of the session."
        return "Photosynthesis is how plants turn light into chemical energy."

    @staticmethod
    def _kind(user: str) -> str:
        if "multiple choice" in user: return "quiz"
        if "true/false" in user: return "lightning"
        if "Evaluate this student" in user: return "evaluate"
        if "Analyze this topic" in user: return "categorize"
        if "markdown summary" in user: return "vault"
        return "explain"


@pytest.fixture
def fake_oracle(monkeypatch) -> FakeOracle:
    oracle = FakeOracle()
    monkeypatch.setenv("LLM_BACKEND", "openai")
    monkeypatch.setattr(llm_bridge, "_chat", oracle)
    return oracle


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()
