from __future__ import annotations

import csv
import importlib
import io
import json
import os
import sys

from fastapi.testclient import TestClient

from quest_core.types import Category, LearningSession
from tests.conftest import build_trial, trial_payload


_DEF_MODULES = [
    "quest_core.config",
    "api.storage",
    "api.app",
]


def _reload_app(tmp_path) -> tuple[object, object]:
    os.environ["DATA_DIR"] = str(tmp_path)
    for name in _DEF_MODULES:
        if name in sys.modules:
            importlib.reload(sys.modules[name])
        else:
            __import__(name)
    storage = sys.modules["api.storage"]
    app_module = sys.modules["api.app"]
    return storage, app_module


def _complete(client, topic: str, difficulty: int = 1, **kw) -> dict:
    body = {
        "topic": topic, "difficulty": difficulty, "trials": trial_payload(**kw),
        "category": "Sciences", "generateVault": False,
    }
    resp = client.post("/sessions/complete", json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_classify_endpoint(tmp_path):
    _storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)

    resp = client.post("/rarity/classify", json={
        "trials": trial_payload(articulation=5, gauntlet=(5, 10), lightning=(10, 20)),
        "difficulty": 3,
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["rarity"] == "normal"
    assert body["finalScore"] == 6.5
    assert body["thresholds"] == {"rare": 6.6, "legendary": 8.1, "unique": 9.5}
    assert body["glowClass"] == "rarity-glow-normal"

    boosted = client.post("/rarity/classify", json={
        "trials": trial_payload(articulation=5, gauntlet=(5, 10), lightning=(10, 20)),
        "difficulty": 3,
        "timeBonus": 1,
    })
    assert boosted.json()["rarity"] == "rare"


def test_classify_rejects_bad_input(tmp_path):
    _storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)

    resp = client.post("/rarity/classify", json={"trials": trial_payload(), "difficulty": 6})
    assert resp.status_code == 422

    bad = trial_payload()
    bad["gauntlet"]["score"] = 9
    bad["gauntlet"]["totalQuestions"] = 4
    resp = client.post("/rarity/classify", json={"trials": bad, "difficulty": 2})
    assert resp.status_code == 422


def test_out_of_scale_articulation_is_rejected_and_not_saved(tmp_path):
    _storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)

    resp = client.post("/sessions/complete", json={
        "topic": "Optics", "difficulty": 1, "category": "Sciences", "generateVault": False,
        "trials": trial_payload(articulation=-40, gauntlet=(0, 10), lightning=(0, 20)),
    })
    assert resp.status_code == 422
    too_high = client.post("/rarity/classify", json={
        "trials": trial_payload(articulation=10.5), "difficulty": 1,
    })
    assert too_high.status_code == 422
    assert client.get("/sessions").json()["sessions"] == []


def test_complete_list_search_and_persist(tmp_path):
    storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)

    s1 = _complete(client, "Photosynthesis", articulation=10, gauntlet=(10, 10), lightning=(20, 20))
    s2 = _complete(client, "Refraction", difficulty=2)
    assert s1["rarity"] == "unique" and s1["finalScore"] == 10.0
    assert s1["difficultyName"] == "I'm Too Young to Die"
    assert storage.SESSIONS_PATH.exists()

    listed = client.get("/sessions").json()["sessions"]
    assert [s["id"] for s in listed] == [s1["id"], s2["id"]]
    found = client.get("/sessions", params={"q": "refrac"}).json()["sessions"]
    assert [s["id"] for s in found] == [s2["id"]]
    rare_only = client.get("/sessions", params={"rarity": "unique"}).json()["sessions"]
    assert [s["id"] for s in rare_only] == [s1["id"]]

    assert client.get(f"/sessions/{s1['id']}").json()["topic"] == "Photosynthesis"
    assert client.get("/sessions/nope").status_code == 404

    # a fresh app on the same DATA_DIR sees the archive
    _storage, again = _reload_app(tmp_path)
    assert len(TestClient(again.app).get("/sessions").json()["sessions"]) == 2


def test_complete_uses_oracle_for_category_and_vault(tmp_path, fake_oracle):
    _storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)

    resp = client.post("/sessions/complete", json={
        "topic": "Cells", "difficulty": 2, "trials": trial_payload(),
        "chatHistory": [{"type": "user", "content": "Cells"}],
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["category"] == "Sciences"
    assert body["vaultContent"].startswith("# Vault entry")
    assert body["chatHistory"][0]["content"] == "Cells"
    assert fake_oracle.calls == ["categorize", "vault"]

    md = client.get(f"/sessions/{body['id']}/export.md")
    assert md.status_code == 200
    assert md.headers["content-type"].startswith("text/markdown")
    assert "Cells.md" in md.headers["content-disposition"]


def test_append_vault_and_constellation_and_stats(tmp_path):
    _storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)
    s = _complete(client, "Optics", difficulty=4)

    resp = client.post(f"/sessions/{s['id']}/vault", json={"content": "Lens notes"})
    assert resp.status_code == 200 and resp.json()["vaultContent"] == "Lens notes"
    assert client.post("/sessions/missing/vault", json={"content": "x"}).status_code == 404

    nodes = client.get("/constellation").json()["nodes"]
    assert len(nodes) == 1
    assert nodes[0]["radius"] == 20
    assert nodes[0]["categoryColor"] == "#3b82f6"
    assert nodes[0]["borderWidth"] in (1, 2, 3, 4)

    stats = client.get("/stats").json()
    assert stats["totalNodes"] == 1 and stats["totalTimeSpent"] == 40

    assert client.delete("/vault").json() == {"ok": True}
    assert client.get("/sessions").json()["sessions"] == []
    assert client.get("/constellation").json()["nodes"] == []


def test_vault_exports(tmp_path):
    _storage, app_module = _reload_app(tmp_path / "enabled")
    client = TestClient(app_module.app)
    _complete(client, "Optics")
    _complete(client, "Acoustics")

    data = client.get("/vault/export.json")
    assert data.status_code == 200
    assert [r["topic"] for r in data.json()] == ["Optics", "Acoustics"]

    csv_resp = client.get("/vault/export.csv")
    assert csv_resp.status_code == 200
    rows = list(csv.DictReader(io.StringIO(csv_resp.text)))
    assert len(rows) == 2 and rows[1]["topic"] == "Acoustics"


def test_vault_exports_disabled(tmp_path, monkeypatch):
    monkeypatch.setenv("VAULT_EXPORT_ENABLED", "0")
    _storage, app_module = _reload_app(tmp_path / "disabled")
    client = TestClient(app_module.app)

    assert client.get("/vault/export.json").status_code == 404
    assert client.get("/vault/export.csv").status_code == 404


def test_oracle_endpoints(tmp_path, fake_oracle):
    _storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)

    assert client.post("/ai/explain", json={"topic": "Optics", "difficulty": 2}).json()["content"]
    assert len(client.post("/ai/quiz", json={"topic": "Optics", "difficulty": 2}).json()["questions"]) == 10
    statements = client.post("/ai/lightning", json={"topic": "Optics"}).json()["statements"]
    assert statements[0] == {"statement": "S0", "isTrue": True}
    assert client.post("/ai/evaluate", json={"topic": "Optics", "userExplanation": "Light bends."}).json()["score"] == 8
    assert client.post("/ai/categorize", json={"topic": "Optics"}).json()["category"] == "Sciences"

    assert client.post("/ai/explain", json={"topic": "Optics", "difficulty": 0}).status_code == 422
    fake_oracle.fail.add("quiz")
    assert client.post("/ai/quiz", json={"topic": "Optics", "difficulty": 2}).status_code == 502


def test_health_and_difficulties(tmp_path, monkeypatch):
    monkeypatch.setenv("LLM_BACKEND", "none")
    _storage, app_module = _reload_app(tmp_path)
    client = TestClient(app_module.app)

    health = client.get("/health").json()
    assert health["llm_backend"] == "none"
    levels = client.get("/difficulties").json()["difficulties"]
    assert [d["level"] for d in levels] == [1, 2, 3, 4, 5]
    assert levels[4]["name"] == "Nightmare"


def test_store_skips_records_that_are_not_objects(tmp_path):
    storage, _app_module = _reload_app(tmp_path)
    store = storage.JsonSessionStore(tmp_path / "s.json", tmp_path / "c.json")
    store.save(LearningSession(
        id="s1", topic="Optics", date="2026-10-17", difficulty=1, difficulty_name="x",
        category=Category.SCIENCES, rarity="rare", final_score=7.0, trials=build_trial(),
    ))

    raw = json.loads((tmp_path / "s.json").read_text(encoding="utf-8"))
    (tmp_path / "s.json").write_text(json.dumps([42, "junk"] + raw), encoding="utf-8")
    (tmp_path / "c.json").write_text(json.dumps([None, 7]), encoding="utf-8")

    assert [s.topic for s in store.list()] == ["Optics"]
    assert store.list_nodes() == []
    store.save(store.list()[0])
    assert [s.id for s in store.list()] == ["s1"]
