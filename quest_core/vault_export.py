"""Helpers to export the knowledge vault in JSON/CSV/markdown formats."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
import csv
import io
import json

from .records import session_to_dict
from .types import LearningSession

_FIELDS: tuple[str, ...] = (
    "id",
    "date",
    "topic",
    "category",
    "difficulty",
    "difficultyName",
    "rarity",
    "finalScore",
    "articulationScore",
    "gauntletCorrect",
    "gauntletTotal",
    "lightningCorrect",
    "lightningTotal",
    "timeBonus",
)


def _row(session: LearningSession) -> Dict[str, Any]:
    t = session.trials
    return {
        "id": session.id,
        "date": session.date,
        "topic": session.topic,
        "category": session.category.value,
        "difficulty": session.difficulty,
        "difficultyName": session.difficulty_name,
        "rarity": session.rarity,
        "finalScore": f"{session.final_score:.2f}",
        "articulationScore": "" if t is None else t.articulation.score,
        "gauntletCorrect": "" if t is None else t.gauntlet.correct_count,
        "gauntletTotal": "" if t is None else t.gauntlet.total_questions,
        "lightningCorrect": "" if t is None else t.lightning.correct_count,
        "lightningTotal": "" if t is None else t.lightning.total_questions,
        "timeBonus": "" if t is None else t.lightning.time_bonus,
    }


def to_json(sessions: Iterable[LearningSession]) -> str:
    """Whole vault as pretty-printed JSON, one record per session."""

    records: List[Dict[str, Any]] = [session_to_dict(s) for s in sessions]
    return json.dumps(records, indent=2, ensure_ascii=False)


def to_csv(sessions: Iterable[LearningSession]) -> str:
    """Render one summary row per session with a fixed header."""

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=_FIELDS)
    writer.writeheader()
    for s in sessions:
        writer.writerow(_row(s))
    return buf.getvalue()


def session_markdown(session: Optional[LearningSession]) -> Optional[str]:
    return None if session is None else session.vault_content


def markdown_filename(session: LearningSession) -> str:
    stem = "".join(c if c.isalnum() or c in " -_" else "_" for c in session.topic).strip()
    return f"{stem or 'session'}.md"


__all__ = ["to_json", "to_csv", "session_markdown", "markdown_filename"]
