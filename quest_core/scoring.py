from __future__ import annotations
from typing import Optional, Sequence
import re

from .config import SECONDS_PER_BONUS_POINT
from .types import (
    ArticulationResult,
    GauntletResult,
    LightningResult,
    LightningStatement,
    QuizQuestion,
)

_DEFLECT_RX = re.compile(r"\b(i\s*don'?t\s*know|no\s*idea|pass|skip)\b", re.I)


def time_bonus(remaining_seconds: Optional[float]) -> int:
    """Speed bonus points left on the lightning clock: one per 6 seconds."""
    if remaining_seconds is None or remaining_seconds <= 0:
        return 0
    return int(remaining_seconds // SECONDS_PER_BONUS_POINT)


def format_clock(seconds: int) -> str:
    s = max(0, int(seconds))
    return f"{s // 60:02d}:{s % 60:02d}"


def is_deflection(text: str) -> bool:
    ans = text if isinstance(text, str) else ""
    toks = len(re.findall(r"\w+", ans))
    return toks < 6 or bool(_DEFLECT_RX.search(ans))


def _answer_at(user_answers: Sequence, i: int):
    return user_answers[i] if i < len(user_answers) else None


def grade_gauntlet(questions: Sequence[QuizQuestion], user_answers: Sequence[Optional[int]]) -> GauntletResult:
    """Mark each multiple-choice answer; a missing answer is wrong."""
    graded: list[QuizQuestion] = []
    marks: list[bool] = []
    for i, q in enumerate(questions):
        ua = _answer_at(user_answers, i)
        chosen = None if ua is None else int(ua)
        graded.append(QuizQuestion(q.question, list(q.options), int(q.correct_answer), chosen))
        marks.append(chosen is not None and chosen == int(q.correct_answer))
    return GauntletResult.from_answers(marks, graded)


def grade_lightning(
    statements: Sequence[LightningStatement],
    user_answers: Sequence[Optional[bool]],
    remaining_seconds: float = 0,
) -> LightningResult:
    graded: list[LightningStatement] = []
    marks: list[bool] = []
    for i, st in enumerate(statements):
        ua = _answer_at(user_answers, i)
        chosen = None if ua is None else bool(ua)
        graded.append(LightningStatement(st.statement, bool(st.is_true), chosen))
        marks.append(chosen is not None and chosen == bool(st.is_true))
    return LightningResult.from_answers(marks, time_bonus(remaining_seconds), graded)


def articulation(score: float, text: str, feedback: str) -> ArticulationResult:
    return ArticulationResult(score=float(score), text=text or "", feedback=feedback or "")
