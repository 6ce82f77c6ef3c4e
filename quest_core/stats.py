from __future__ import annotations
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional
import math

from .config import MINUTES_PER_DIFFICULTY
from .types import LearningSession, RARITIES

_DAY_SEC = 24 * 60 * 60


def _as_utc(day: str) -> Optional[datetime]:
    try:
        dt = datetime.fromisoformat(day)
    except (TypeError, ValueError):
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def current_streak(sessions: Iterable[LearningSession], now: Optional[datetime] = None) -> int:
    """Sessions in an unbroken run back from ``now``, at most one day apart."""
    days = sorted((d for d in (_as_utc(s.date) for s in sessions) if d is not None), reverse=True)
    anchor = now or datetime.now(timezone.utc)
    streak = 0
    for day in days:
        gap = math.floor((anchor - day).total_seconds() / _DAY_SEC)
        if gap > 1:
            break
        streak += 1
        anchor = day
    return streak


def vault_stats(sessions: Iterable[LearningSession], now: Optional[datetime] = None) -> Dict[str, int]:
    items = list(sessions)
    counts = {r: 0 for r in RARITIES}
    for s in items:
        counts[s.rarity] = counts.get(s.rarity, 0) + 1
    return {
        "totalNodes": len(items),
        "normalNodes": counts["normal"],
        "rareNodes": counts["rare"],
        "legendaryNodes": counts["legendary"],
        "uniqueNodes": counts["unique"],
        "currentStreak": current_streak(items, now),
        # rough estimate: ten minutes per difficulty level
        "totalTimeSpent": sum(s.difficulty * MINUTES_PER_DIFFICULTY for s in items),
    }
