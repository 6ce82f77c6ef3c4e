from __future__ import annotations
import math
from typing import Dict, List, Sequence, Tuple

from .types import Category, ConstellationNode, LearningSession

CENTER: Tuple[float, float] = (400.0, 300.0)

CATEGORY_ANGLE: Dict[Category, float] = {
    Category.SCIENCES: 0.0,
    Category.MATHEMATICS: math.pi / 3,
    Category.TECHNOLOGY: 2 * math.pi / 3,
    Category.HUMANITIES: math.pi,
    Category.ARTS: 4 * math.pi / 3,
    Category.SKILLS: 5 * math.pi / 3,
    Category.LANGUAGES: 11 * math.pi / 6,
}

CATEGORY_COLOR: Dict[Category, str] = {
    Category.SCIENCES: "#3b82f6",
    Category.MATHEMATICS: "#10b981",
    Category.TECHNOLOGY: "#8b5cf6",
    Category.HUMANITIES: "#f59e0b",
    Category.ARTS: "#ec4899",
    Category.SKILLS: "#f97316",
    Category.LANGUAGES: "#ef4444",
}


def node_position(category: Category, node_count: int) -> Tuple[float, float]:
    """Place the next node on its category's spoke; rings cycle every three nodes."""
    radius = 100 + (node_count % 3) * 50
    offset = (node_count * 0.3) % (math.pi / 6)
    angle = CATEGORY_ANGLE[category] + offset
    cx, cy = CENTER
    return cx + radius * math.cos(angle), cy + radius * math.sin(angle)


def node_radius(difficulty: int) -> int:
    return 8 + difficulty * 3


def build_node(session: LearningSession, node_count: int, connections: Sequence[str] = ()) -> ConstellationNode:
    x, y = node_position(session.category, node_count)
    return ConstellationNode(
        id=session.id,
        topic=session.topic,
        category=session.category,
        difficulty=session.difficulty,
        rarity=session.rarity,
        x=x,
        y=y,
        connections=list(connections),
    )


def link_connections(related_topics: Sequence[str], nodes: Sequence[ConstellationNode]) -> List[str]:
    """Ids of existing nodes whose topic matches one of the related topics."""
    wanted = {t.strip().lower() for t in related_topics if t and t.strip()}
    return [n.id for n in nodes if n.topic.strip().lower() in wanted]
