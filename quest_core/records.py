"""Conversion between domain dataclasses and the stored JSON record shape.

Stored records use the camelCase keys of the browser client archive
(``finalScore``, ``difficultyName``, ``timeBonus`` ...) so exported vaults stay
readable by it.  ``rarity`` is a plain string and ``finalScore`` a two-decimal
number.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from .types import (
    ArticulationResult,
    Category,
    ChatMessage,
    ConstellationNode,
    GauntletResult,
    LearningSession,
    LightningResult,
    LightningStatement,
    QuizQuestion,
    RARITIES,
    TrialRecord,
)


def _rarity(raw: Any) -> str:
    r = str(raw or "").lower()
    return r if r in RARITIES else "normal"


def question_to_dict(q: QuizQuestion) -> Dict[str, Any]:
    d: Dict[str, Any] = {"question": q.question, "options": list(q.options), "correctAnswer": q.correct_answer}
    if q.user_answer is not None:
        d["userAnswer"] = q.user_answer
    return d


def question_from_dict(d: Dict[str, Any]) -> QuizQuestion:
    ua = d.get("userAnswer")
    return QuizQuestion(
        question=str(d.get("question", "")),
        options=[str(o) for o in d.get("options") or []],
        correct_answer=int(d.get("correctAnswer", 0)),
        user_answer=None if ua is None else int(ua),
    )


def statement_to_dict(s: LightningStatement) -> Dict[str, Any]:
    d: Dict[str, Any] = {"statement": s.statement, "isTrue": s.is_true}
    if s.user_answer is not None:
        d["userAnswer"] = s.user_answer
    return d


def statement_from_dict(d: Dict[str, Any]) -> LightningStatement:
    ua = d.get("userAnswer")
    return LightningStatement(
        statement=str(d.get("statement", "")),
        is_true=bool(d.get("isTrue")),
        user_answer=None if ua is None else bool(ua),
    )


def trial_to_dict(t: TrialRecord) -> Dict[str, Any]:
    return {
        "articulation": {
            "score": t.articulation.score,
            "text": t.articulation.text,
            "feedback": t.articulation.feedback,
        },
        "gauntlet": {
            "score": t.gauntlet.correct_count,
            "totalQuestions": t.gauntlet.total_questions,
            "answers": list(t.gauntlet.answers),
            "questions": [question_to_dict(q) for q in t.gauntlet.questions],
        },
        "lightning": {
            "score": t.lightning.correct_count,
            "totalQuestions": t.lightning.total_questions,
            "timeBonus": t.lightning.time_bonus,
            "answers": list(t.lightning.answers),
            "questions": [statement_to_dict(s) for s in t.lightning.questions],
        },
    }


def _total(d: Dict[str, Any]) -> int:
    # older records carry no totalQuestions; the answer list is the denominator
    if d.get("totalQuestions") is not None:
        return int(d["totalQuestions"])
    return len(d.get("answers") or [])


def trial_from_dict(d: Dict[str, Any]) -> TrialRecord:
    """Raises ``MalformedTrial`` when a stored tally contradicts itself."""
    a = d.get("articulation") or {}
    g = d.get("gauntlet") or {}
    l = d.get("lightning") or {}
    return TrialRecord(
        articulation=ArticulationResult(
            score=float(a.get("score", 0)),
            text=str(a.get("text") or ""),
            feedback=str(a.get("feedback") or ""),
        ),
        gauntlet=GauntletResult(
            correct_count=int(g.get("score", 0)),
            total_questions=_total(g),
            answers=[bool(x) for x in g.get("answers") or []],
            questions=[question_from_dict(q) for q in g.get("questions") or []],
        ),
        lightning=LightningResult(
            correct_count=int(l.get("score", 0)),
            total_questions=_total(l),
            time_bonus=int(l.get("timeBonus", 0)),
            answers=[bool(x) for x in l.get("answers") or []],
            questions=[statement_from_dict(s) for s in l.get("questions") or []],
        ),
    )


def session_to_dict(s: LearningSession) -> Dict[str, Any]:
    return {
        "id": s.id,
        "topic": s.topic,
        "date": s.date,
        "difficulty": s.difficulty,
        "difficultyName": s.difficulty_name,
        "category": s.category.value,
        "trials": trial_to_dict(s.trials) if s.trials else None,
        "rarity": s.rarity,
        "finalScore": round(float(s.final_score), 2),
        "chatHistory": [
            {"id": m.id, "type": m.type, "content": m.content, "timestamp": m.timestamp}
            for m in s.chat_history
        ],
        "vaultContent": s.vault_content,
        "aiExplanation": s.ai_explanation,
    }


def session_from_dict(d: Dict[str, Any]) -> LearningSession:
    trials: Optional[TrialRecord] = trial_from_dict(d["trials"]) if d.get("trials") else None
    history: List[ChatMessage] = [
        ChatMessage(
            id=str(m.get("id", "")),
            type=m.get("type", "system"),
            content=str(m.get("content", "")),
            timestamp=str(m.get("timestamp", "")),
        )
        for m in d.get("chatHistory") or []
    ]
    return LearningSession(
        id=str(d["id"]),
        topic=str(d.get("topic", "")),
        date=str(d.get("date", "")),
        difficulty=int(d.get("difficulty", 1)),
        difficulty_name=str(d.get("difficultyName", "")),
        category=Category.parse(d.get("category")),
        rarity=_rarity(d.get("rarity")),  # type: ignore[arg-type]
        final_score=float(d.get("finalScore", 0.0)),
        trials=trials,
        ai_explanation=str(d.get("aiExplanation") or ""),
        vault_content=str(d.get("vaultContent") or ""),
        chat_history=history,
    )


def node_to_dict(n: ConstellationNode) -> Dict[str, Any]:
    return {
        "id": n.id,
        "topic": n.topic,
        "category": n.category.value,
        "difficulty": n.difficulty,
        "rarity": n.rarity,
        "x": n.x,
        "y": n.y,
        "connections": list(n.connections),
    }


def node_from_dict(d: Dict[str, Any]) -> ConstellationNode:
    return ConstellationNode(
        id=str(d["id"]),
        topic=str(d.get("topic", "")),
        category=Category.parse(d.get("category")),
        difficulty=int(d.get("difficulty", 1)),
        rarity=_rarity(d.get("rarity")),  # type: ignore[arg-type]
        x=float(d.get("x", 0.0)),
        y=float(d.get("y", 0.0)),
        connections=[str(c) for c in d.get("connections") or []],
    )
