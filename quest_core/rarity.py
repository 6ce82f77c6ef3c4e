"""Rarity engine: turns a finished trial record into a score and a tier.

The engine is a pure function of its arguments.  Each trial is normalised to
a 0..10 scale, weighted, topped up with a difficulty bonus and a speed bonus,
clamped at 10 and then classified against thresholds that rise with the
selected difficulty.

Classification uses the clamped score *before* rounding; the returned
``final_score`` is the same value rounded half away from zero to two
decimals.  A score of 6.595 at difficulty 3 is therefore reported as 6.60
but stays ``normal`` (threshold 6.6).
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional

from .config import (
    W_ARTICULATION,
    W_GAUNTLET,
    W_LIGHTNING,
    DIFFICULTY_BONUS_PER_LEVEL,
    SPEED_BONUS_PER_POINT,
    SCORE_CEIL,
    SCORE_DECIMALS,
    THRESHOLD_PENALTY_PER_LEVEL,
    BASE_THRESHOLDS,
    THRESHOLD_CAPS,
)
from .types import TrialRecord, RarityOutcome, Rarity, check_difficulty

__all__ = [
    "normalize",
    "base_score",
    "raw_score",
    "thresholds",
    "rarity_for",
    "round_score",
    "classify",
    "rarity_color",
    "rarity_glow_class",
    "rarity_border_width",
]

_ORDER: tuple[str, ...] = ("unique", "legendary", "rare")


def normalize(correct: int, total: int) -> float:
    """Map a ``correct/total`` tally onto 0..10; an empty round scores 0."""
    if total <= 0:
        return 0.0
    return (correct / total) * 10.0


def base_score(trial: TrialRecord) -> float:
    a = float(trial.articulation.score)
    g = normalize(trial.gauntlet.correct_count, trial.gauntlet.total_questions)
    l = normalize(trial.lightning.correct_count, trial.lightning.total_questions)
    return a * W_ARTICULATION + g * W_GAUNTLET + l * W_LIGHTNING


def raw_score(trial: TrialRecord, difficulty: int, time_bonus: Optional[int] = None) -> float:
    """Clamped, unrounded composite score.  This is the value tiers are judged on."""
    level = check_difficulty(difficulty)
    tb = trial.lightning.time_bonus if time_bonus is None else time_bonus
    total = (
        base_score(trial)
        + level * DIFFICULTY_BONUS_PER_LEVEL
        + tb * SPEED_BONUS_PER_POINT
    )
    return min(SCORE_CEIL, total)


def thresholds(difficulty: int) -> Dict[str, float]:
    """Inclusive lower bounds for each tier above ``normal``.

    Parameters
    ----------
    difficulty: int
        Level in [1, 5]; anything else raises ``OutOfRangeDifficulty``.

    Returns
    -------
    dict
        ``{"rare": r, "legendary": l, "unique": u}`` with each value capped
        independently.  Values are rounded to two decimals so that
        ``(level - 1) * 0.3`` float noise cannot move a boundary.
    """
    level = check_difficulty(difficulty)
    penalty = (level - 1) * THRESHOLD_PENALTY_PER_LEVEL
    return {
        name: round(min(THRESHOLD_CAPS[name], BASE_THRESHOLDS[name] + penalty), 2)
        for name in ("rare", "legendary", "unique")
    }


def rarity_for(score: float, difficulty: int) -> Rarity:
    t = thresholds(difficulty)
    s = float(score)
    for name in _ORDER:
        if s >= t[name]:
            return name  # type: ignore[return-value]
    return "normal"


def round_score(score: float) -> float:
    # repr keeps the shortest decimal form, so 2.675 rounds to 2.68 rather than 2.67
    q = Decimal(repr(float(score))).quantize(Decimal(1).scaleb(-SCORE_DECIMALS), rounding=ROUND_HALF_UP)
    return float(q)


def classify(trial: TrialRecord, difficulty: int, time_bonus: Optional[int] = None) -> RarityOutcome:
    """Score a completed trial record.

    ``time_bonus`` overrides ``trial.lightning.time_bonus`` when given.
    Raises ``OutOfRangeDifficulty`` for a difficulty outside [1, 5].
    """
    s = raw_score(trial, difficulty, time_bonus)
    return RarityOutcome(rarity=rarity_for(s, difficulty), final_score=round_score(s))


# presentation lookups; unknown tiers fall back to "normal"
RARITY_COLORS: Dict[str, str] = {
    "normal": "var(--rarity-normal)",
    "rare": "var(--rarity-rare)",
    "legendary": "var(--rarity-legendary)",
    "unique": "var(--rarity-unique)",
}
RARITY_BORDER_WIDTH: Dict[str, int] = {"normal": 1, "rare": 2, "legendary": 3, "unique": 4}


def _known(rarity: object) -> str:
    r = str(rarity or "").lower()
    return r if r in RARITY_COLORS else "normal"


def rarity_color(rarity: object) -> str:
    return RARITY_COLORS[_known(rarity)]


def rarity_glow_class(rarity: object) -> str:
    return f"rarity-glow-{_known(rarity)}"


def rarity_border_width(rarity: object) -> int:
    return RARITY_BORDER_WIDTH[_known(rarity)]
