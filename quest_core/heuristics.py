# quest_core/heuristics.py
from __future__ import annotations
import re

from .scoring import is_deflection

_DEFINITION_RX = re.compile(r'\b(is|are|means|refers to|defined as|describes|consists of)\b', re.I)
_EXAMPLE_RX    = re.compile(r'\b(for example|for instance|e\.g\.|such as|like when|imagine)\b', re.I)
_MECHANISM_RX  = re.compile(r'\b(because|therefore|causes|leads to|so that|which means|as a result|works by)\b', re.I)
_CAVEAT_RX     = re.compile(r'\b(however|but|unless|except|misconception|not to be confused|although)\b', re.I)


def heuristic_explanation_score(topic: str, text: str) -> float:
    """Offline stand-in for the oracle's 1-10 explanation grade."""
    if not isinstance(text, str) or is_deflection(text): return 1.0
    t = text.strip()

    score = 3.0
    if _DEFINITION_RX.search(t): score += 1.5
    if _EXAMPLE_RX.search(t):    score += 1.5
    if _MECHANISM_RX.search(t):  score += 1.5
    if _CAVEAT_RX.search(t):     score += 1.0

    topic_words = {w for w in re.findall(r"\w+", (topic or "").lower()) if len(w) > 3}
    if topic_words and topic_words & set(re.findall(r"\w+", t.lower())): score += 0.5

    wc = len(t.split())
    if 40 <= wc <= 400: score += 1.0
    elif wc >= 20:      score += 0.5

    return max(1.0, min(10.0, round(score, 1)))
