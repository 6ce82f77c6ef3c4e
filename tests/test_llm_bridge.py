from __future__ import annotations

import pytest

from quest_core import llm_bridge
from quest_core.errors import OracleError, OutOfRangeDifficulty
from quest_core.types import Category


def test_quiz_parsing_drops_malformed_questions(fake_oracle):
    qs = llm_bridge.generate_quiz("Optics", 2)
    assert len(qs) == 10
    assert qs[3].options == ["a", "b", "c", "d"] and qs[3].correct_answer == 3


def test_lightning_parsing_requires_boolean_flag(fake_oracle):
    sts = llm_bridge.generate_lightning_round("Optics")
    assert len(sts) == 20
    assert sts[0].is_true is True and sts[1].is_true is False


def test_evaluate_clamps_score(fake_oracle):
    fake_oracle.evaluate_score = 15
    score, feedback = llm_bridge.evaluate_explanation("Optics", "Light bends.")
    assert score == 10.0 and feedback == "Clear and accurate."
    fake_oracle.evaluate_score = 0
    assert llm_bridge.evaluate_explanation("Optics", "Light bends.")[0] == 1.0


def test_evaluate_falls_back_to_heuristic_on_failure(fake_oracle):
    fake_oracle.fail.add("evaluate")
    score, feedback = llm_bridge.evaluate_explanation("Optics", "no idea")
    assert score == 1.0
    assert "heuristic" in feedback


def test_evaluate_offline_never_calls_oracle(fake_oracle, monkeypatch):
    monkeypatch.setenv("LLM_BACKEND", "none")
    score, _ = llm_bridge.evaluate_explanation("Optics", "i don't know")
    assert score == 1.0
    assert fake_oracle.calls == []


def test_categorize_parses_and_falls_back(fake_oracle):
    assert llm_bridge.categorize_topic("Cells") == (Category.SCIENCES, ["Chemistry", "Biology"])
    fake_oracle.fail.add("categorize")
    assert llm_bridge.categorize_topic("Cells") == (Category.SKILLS, [])


def test_explain_failure_raises_oracle_error(fake_oracle):
    assert llm_bridge.explain_topic("Optics", 1).startswith("Photosynthesis")
    fake_oracle.fail.add("explain")
    with pytest.raises(OracleError) as exc:
        llm_bridge.explain_topic("Optics", 1)
    assert exc.value.operation == "explain"


def test_explain_rejects_bad_difficulty(fake_oracle):
    with pytest.raises(OutOfRangeDifficulty):
        llm_bridge.explain_topic("Optics", 9)
    assert fake_oracle.calls == []


def test_non_json_reply_is_an_oracle_error(monkeypatch):
    monkeypatch.setattr(llm_bridge, "_chat", lambda *a, **k: "not json")
    with pytest.raises(OracleError):
        llm_bridge.generate_quiz("Optics", 1)


def test_no_backend_means_quiz_unavailable(monkeypatch):
    monkeypatch.setenv("LLM_BACKEND", "none")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(OracleError):
        llm_bridge.generate_quiz("Optics", 1)
