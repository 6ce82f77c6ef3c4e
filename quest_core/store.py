"""Session store interface used by the completion workflow.

The rarity engine never touches storage; only ``session.complete_session``
and the API layer talk to a ``SessionStore``.  ``api.storage.JsonSessionStore``
is the on-disk implementation, ``InMemorySessionStore`` serves tests and the
terminal runner.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol

from .types import Category, ConstellationNode, LearningSession


class SessionStore(Protocol):
    def save(self, session: LearningSession) -> None: ...
    def list(self) -> List[LearningSession]: ...
    def find(self, session_id: str) -> Optional[LearningSession]: ...
    def search(self, query: str) -> List[LearningSession]: ...
    def put_node(self, node: ConstellationNode) -> None: ...
    def list_nodes(self) -> List[ConstellationNode]: ...
    def clear(self) -> None: ...


def matches(session: LearningSession, query: str) -> bool:
    q = query.lower()
    return (
        q in session.topic.lower()
        or q in session.category.value.lower()
        or q in session.vault_content.lower()
        or q in session.ai_explanation.lower()
    )


def search_sessions(sessions: Iterable[LearningSession], query: str | None) -> List[LearningSession]:
    items = list(sessions)
    if not query or not query.strip():
        return items
    return [s for s in items if matches(s, query.strip())]


def filter_sessions(
    sessions: Iterable[LearningSession],
    category: Category | str | None = None,
    rarity: str | None = None,
) -> List[LearningSession]:
    out = list(sessions)
    if category and category != "all":
        # exact name match; an unknown category matches nothing
        wanted = (category.value if isinstance(category, Category) else str(category)).strip().lower()
        out = [s for s in out if s.category.value.lower() == wanted]
    if rarity and rarity != "all":
        out = [s for s in out if s.rarity == rarity.lower()]
    return out


class InMemorySessionStore:
    """Insertion-ordered store; saving an existing id replaces it in place."""

    def __init__(self) -> None:
        self._sessions: Dict[str, LearningSession] = {}
        self._nodes: Dict[str, ConstellationNode] = {}

    def save(self, session: LearningSession) -> None:
        self._sessions[session.id] = session

    def list(self) -> List[LearningSession]:
        return list(self._sessions.values())

    def find(self, session_id: str) -> Optional[LearningSession]:
        return self._sessions.get(session_id)

    def search(self, query: str) -> List[LearningSession]:
        return search_sessions(self._sessions.values(), query)

    def put_node(self, node: ConstellationNode) -> None:
        self._nodes[node.id] = node

    def list_nodes(self) -> List[ConstellationNode]:
        return list(self._nodes.values())

    def clear(self) -> None:
        self._sessions.clear()
        self._nodes.clear()
