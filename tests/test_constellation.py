from __future__ import annotations

import math

import pytest

from quest_core.constellation import (
    CATEGORY_ANGLE,
    CATEGORY_COLOR,
    build_node,
    link_connections,
    node_position,
    node_radius,
)
from quest_core.types import Category, ConstellationNode, LearningSession


def _session(topic: str = "Optics", category: Category = Category.SCIENCES) -> LearningSession:
    return LearningSession(
        id="s1", topic=topic, date="2026-10-17", difficulty=3, difficulty_name="Hurt Me Plenty",
        category=category, rarity="legendary", final_score=8.2,
    )


def test_every_category_has_angle_and_color():
    assert set(CATEGORY_ANGLE) == set(Category)
    assert set(CATEGORY_COLOR) == set(Category)


def test_first_node_sits_on_inner_ring():
    x, y = node_position(Category.SCIENCES, 0)
    assert x == pytest.approx(500.0)
    assert y == pytest.approx(300.0)


def test_rings_cycle_and_offset_wraps():
    x, y = node_position(Category.HUMANITIES, 4)
    radius = 150
    angle = math.pi + (4 * 0.3) % (math.pi / 6)
    assert x == pytest.approx(400 + radius * math.cos(angle))
    assert y == pytest.approx(300 + radius * math.sin(angle))


def test_node_radius_grows_with_difficulty():
    assert [node_radius(d) for d in range(1, 6)] == [11, 14, 17, 20, 23]


def test_build_node_copies_session_fields():
    node = build_node(_session(), 2, ["x1"])
    assert node.id == "s1" and node.rarity == "legendary" and node.difficulty == 3
    assert node.connections == ["x1"]
    assert (node.x, node.y) == pytest.approx(node_position(Category.SCIENCES, 2))


def test_link_connections_matches_topics_case_insensitively():
    nodes = [
        ConstellationNode("n1", "Chemistry", Category.SCIENCES, 2, "rare", 0, 0),
        ConstellationNode("n2", "Poetry", Category.ARTS, 1, "normal", 0, 0),
    ]
    assert link_connections(["chemistry ", "Biology"], nodes) == ["n1"]
    assert link_connections([], nodes) == []
