"""JSON-file implementation of ``quest_core.store.SessionStore``.

Sessions and constellation nodes live in two JSON arrays under ``DATA_DIR``
so the API keeps the archive across restarts.  Writes go through a temp
file and an atomic rename, serialised by a process-wide lock.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from quest_core.errors import MalformedTrial
from quest_core.records import node_from_dict, node_to_dict, session_from_dict, session_to_dict
from quest_core.store import search_sessions
from quest_core.types import ConstellationNode, LearningSession


DATA_ROOT = Path(os.getenv("DATA_DIR", "data")).resolve()
SESSIONS_PATH = DATA_ROOT / "sessions.json"
CONSTELLATION_PATH = DATA_ROOT / "constellation.json"

_LOCK = threading.Lock()
log = logging.getLogger(__name__)


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.error("unreadable store file %s: %s", path, e)
        return default


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(path)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _upsert(records: List[Dict[str, Any]], record: Dict[str, Any]) -> List[Dict[str, Any]]:
    for i, r in enumerate(records):
        if isinstance(r, dict) and r.get("id") == record["id"]:
            records[i] = record
            return records
    records.append(record)
    return records


class JsonSessionStore:
    def __init__(self, sessions_path: Path = SESSIONS_PATH, constellation_path: Path = CONSTELLATION_PATH) -> None:
        self.sessions_path = Path(sessions_path)
        self.constellation_path = Path(constellation_path)

    def _raw_sessions(self) -> List[Dict[str, Any]]:
        data = _read_json(self.sessions_path, [])
        return data if isinstance(data, list) else []

    def save(self, session: LearningSession) -> None:
        """Persist a session, replacing any earlier record with the same id."""

        with _LOCK:
            records = _upsert(self._raw_sessions(), session_to_dict(session))
            _write_json(self.sessions_path, records)
        log.info("saved session %s (%d in vault)", session.id, len(records))

    def list(self) -> List[LearningSession]:
        out: List[LearningSession] = []
        for raw in self._raw_sessions():
            if not isinstance(raw, dict):
                log.warning("skipping non-object session record: %r", raw)
                continue
            try:
                out.append(session_from_dict(raw))
            except (KeyError, TypeError, ValueError, MalformedTrial) as e:
                log.warning("skipping unreadable session record %r: %s", raw.get("id"), e)
        return out

    def find(self, session_id: str) -> Optional[LearningSession]:
        for s in self.list():
            if s.id == session_id:
                return s
        return None

    def search(self, query: str) -> List[LearningSession]:
        return search_sessions(self.list(), query)

    def put_node(self, node: ConstellationNode) -> None:
        with _LOCK:
            data = _read_json(self.constellation_path, [])
            records = _upsert(data if isinstance(data, list) else [], node_to_dict(node))
            _write_json(self.constellation_path, records)

    def list_nodes(self) -> List[ConstellationNode]:
        data = _read_json(self.constellation_path, [])
        out: List[ConstellationNode] = []
        for raw in data if isinstance(data, list) else []:
            if not isinstance(raw, dict):
                log.warning("skipping non-object node record: %r", raw)
                continue
            try:
                out.append(node_from_dict(raw))
            except (KeyError, TypeError, ValueError) as e:
                log.warning("skipping unreadable node record: %s", e)
        return out

    def clear(self) -> None:
        with _LOCK:
            for p in (self.sessions_path, self.constellation_path):
                if p.exists():
                    p.unlink()
        log.info("vault cleared")
