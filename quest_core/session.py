from __future__ import annotations
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Callable, Optional, Sequence
import logging, uuid

from .constellation import build_node, link_connections
from .errors import OracleError, SessionNotFound
from .rarity import classify
from .store import SessionStore
from .types import Category, ChatMessage, LearningSession, MessageType, TrialRecord, difficulty_for

log = logging.getLogger(__name__)

VaultWriter = Callable[[LearningSession], str]


def new_message(kind: MessageType, content: str) -> ChatMessage:
    return ChatMessage(
        id=uuid.uuid4().hex,
        type=kind,
        content=content,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def complete_session(
    store: SessionStore,
    *,
    topic: str,
    difficulty: int,
    trial: TrialRecord,
    category: Category | str = Category.SKILLS,
    ai_explanation: str = "",
    chat_history: Sequence[ChatMessage] = (),
    connections: Sequence[str] = (),
    vault_writer: Optional[VaultWriter] = None,
    today: Optional[date] = None,
) -> LearningSession:
    """Score a finished trial, archive the session and add its constellation node.

    The trial is scored exactly once here.  ``vault_writer`` (normally
    ``llm_bridge.create_vault_entry``) may fail; the session is then saved
    with empty vault content.
    """
    level = difficulty_for(difficulty)
    outcome = classify(trial, level.level)
    session = LearningSession(
        id=uuid.uuid4().hex,
        topic=topic.strip(),
        date=(today or date.today()).isoformat(),
        difficulty=level.level,
        difficulty_name=level.name,
        category=Category.parse(category),
        rarity=outcome.rarity,
        final_score=outcome.final_score,
        trials=trial,
        ai_explanation=ai_explanation,
        chat_history=list(chat_history),
    )
    if not trial.well_formed:
        log.warning("session %s scored with an empty trial round", session.id)

    if vault_writer is not None:
        try:
            session = replace(session, vault_content=vault_writer(session))
        except OracleError as e:
            log.warning("vault entry for %s not generated: %s", session.id, e)

    store.save(session)
    nodes = store.list_nodes()
    store.put_node(build_node(session, len(nodes), link_connections(connections, nodes)))
    log.info(
        "session %s complete: topic=%r difficulty=%d rarity=%s score=%.2f",
        session.id, session.topic, session.difficulty, session.rarity, session.final_score,
    )
    return session


def append_vault_content(store: SessionStore, session_id: str, text: str) -> LearningSession:
    """Add narrative text to a saved session; the only edit a session allows."""
    session = store.find(session_id)
    if session is None:
        raise SessionNotFound(session_id)
    extra = (text or "").strip()
    if not extra:
        return session
    body = f"{session.vault_content}\n\n{extra}" if session.vault_content else extra
    updated = replace(session, vault_content=body)
    store.save(updated)
    return updated
