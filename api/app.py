from __future__ import annotations
from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import os, typing as t

# ---- Engine imports ----
from quest_core import llm_bridge
from quest_core.config import VAULT_EXPORT_ENABLED, get_backend
from quest_core.constellation import CATEGORY_COLOR, node_radius
from quest_core.errors import MalformedTrial, OracleError, OutOfRangeDifficulty, SessionNotFound
from quest_core.rarity import classify, rarity_border_width, rarity_color, rarity_glow_class, thresholds
from quest_core.records import (
    node_to_dict,
    question_to_dict,
    session_to_dict,
    statement_to_dict,
    trial_from_dict,
)
from quest_core.session import append_vault_content, complete_session, new_message
from quest_core.stats import vault_stats
from quest_core.store import filter_sessions, search_sessions
from quest_core.types import DIFFICULTIES, Category, ChatMessage, TrialRecord
from quest_core.vault_export import markdown_filename, to_csv as vault_to_csv, to_json as vault_to_json
from .storage import DATA_ROOT, JsonSessionStore, utcnow_iso

STORE = JsonSessionStore()

app = FastAPI(title="Knowledge Quest API")

ALLOWED_ORIGINS = [
    o.strip() for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",") if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

# ---- Schemas ----
class TopicReq(BaseModel):
    topic: str = Field(min_length=1)

class TopicLevelReq(TopicReq):
    difficulty: int

class EvaluateReq(BaseModel):
    topic: str
    userExplanation: str

class QuizQuestionIn(BaseModel):
    question: str
    options: list[str]
    correctAnswer: int
    userAnswer: int | None = None

class StatementIn(BaseModel):
    statement: str
    isTrue: bool
    userAnswer: bool | None = None

class ArticulationIn(BaseModel):
    score: float = Field(ge=0, le=10)
    text: str = ""
    feedback: str = ""

class TallyIn(BaseModel):
    score: int | None = Field(None, ge=0)
    totalQuestions: int | None = Field(None, ge=0)
    answers: list[bool] = []

class GauntletIn(TallyIn):
    questions: list[QuizQuestionIn] = []

class LightningIn(TallyIn):
    timeBonus: int = Field(0, ge=0)
    questions: list[StatementIn] = []

class TrialIn(BaseModel):
    articulation: ArticulationIn
    gauntlet: GauntletIn
    lightning: LightningIn

class ClassifyReq(BaseModel):
    trials: TrialIn
    difficulty: int
    timeBonus: int | None = Field(None, ge=0)

class MessageIn(BaseModel):
    type: t.Literal["user", "ai", "system"]
    content: str
    id: str | None = None
    timestamp: str | None = None

class CompleteReq(BaseModel):
    topic: str = Field(min_length=1)
    difficulty: int
    trials: TrialIn
    category: str | None = None
    aiExplanation: str = ""
    chatHistory: list[MessageIn] = []
    connections: list[str] = []
    generateVault: bool = True

class VaultAppendReq(BaseModel):
    content: str

# ---- Helpers ----
def _trial(req: TrialIn) -> TrialRecord:
    d = req.model_dump(exclude_none=True)
    for k in ("gauntlet", "lightning"):
        d[k].setdefault("score", sum(1 for a in d[k].get("answers", []) if a))
    try:
        return trial_from_dict(d)
    except MalformedTrial as e:
        raise HTTPException(422, str(e))


def _message(m: MessageIn) -> ChatMessage:
    if m.id and m.timestamp:
        return ChatMessage(id=m.id, type=m.type, content=m.content, timestamp=m.timestamp)
    return new_message(m.type, m.content)


def _oracle(fn: t.Callable[..., t.Any], *args: t.Any) -> t.Any:
    try:
        return fn(*args)
    except OutOfRangeDifficulty as e:
        raise HTTPException(422, str(e))
    except OracleError as e:
        raise HTTPException(502, f"AI oracle unavailable ({e.operation})")


def _node_view(node) -> dict[str, t.Any]:
    d = node_to_dict(node)
    d.update(
        radius=node_radius(node.difficulty),
        categoryColor=CATEGORY_COLOR[node.category],
        rarityColor=rarity_color(node.rarity),
        borderWidth=rarity_border_width(node.rarity),
    )
    return d

# ---- Health ----
@app.get("/")
def root():
    return {"status": "ok", "service": "knowledge-quest-api"}

@app.get("/health")
def health():
    return {
        "llm_backend": get_backend(),
        "vault_export_enabled": VAULT_EXPORT_ENABLED,
        "data_dir": str(DATA_ROOT),
        "time": utcnow_iso(),
    }

@app.get("/difficulties")
def difficulties():
    return {"difficulties": [{"level": d.level, "name": d.name, "description": d.description} for d in DIFFICULTIES]}

# ---- Oracle proxy ----
@app.post("/ai/explain")
def ai_explain(req: TopicLevelReq):
    return {"content": _oracle(llm_bridge.explain_topic, req.topic, req.difficulty)}

@app.post("/ai/evaluate")
def ai_evaluate(req: EvaluateReq):
    score, feedback = llm_bridge.evaluate_explanation(req.topic, req.userExplanation)
    return {"score": score, "feedback": feedback}

@app.post("/ai/quiz")
def ai_quiz(req: TopicLevelReq):
    qs = _oracle(llm_bridge.generate_quiz, req.topic, req.difficulty)
    return {"questions": [question_to_dict(q) for q in qs]}

@app.post("/ai/lightning")
def ai_lightning(req: TopicReq):
    sts = _oracle(llm_bridge.generate_lightning_round, req.topic)
    return {"statements": [statement_to_dict(s) for s in sts]}

@app.post("/ai/categorize")
def ai_categorize(req: TopicReq):
    category, connections = llm_bridge.categorize_topic(req.topic)
    return {"category": category.value, "connections": connections}

# ---- Scoring ----
@app.post("/rarity/classify")
def rarity_classify(req: ClassifyReq):
    trial = _trial(req.trials)
    try:
        outcome = classify(trial, req.difficulty, req.timeBonus)
    except OutOfRangeDifficulty as e:
        raise HTTPException(422, str(e))
    return {
        "rarity": outcome.rarity,
        "finalScore": outcome.final_score,
        "thresholds": thresholds(req.difficulty),
        "color": rarity_color(outcome.rarity),
        "glowClass": rarity_glow_class(outcome.rarity),
    }

# ---- Sessions / vault ----
@app.post("/sessions/complete")
def sessions_complete(req: CompleteReq):
    trial = _trial(req.trials)
    category = Category.parse(req.category) if req.category else None
    connections = list(req.connections)
    if category is None:
        category, suggested = llm_bridge.categorize_topic(req.topic)
        connections = connections or suggested
    try:
        session = complete_session(
            STORE,
            topic=req.topic,
            difficulty=req.difficulty,
            trial=trial,
            category=category,
            ai_explanation=req.aiExplanation,
            chat_history=[_message(m) for m in req.chatHistory],
            connections=connections,
            vault_writer=llm_bridge.create_vault_entry if req.generateVault else None,
        )
    except OutOfRangeDifficulty as e:
        raise HTTPException(422, str(e))
    return session_to_dict(session)

@app.get("/sessions")
def sessions_list(
    q: str | None = Query(None, description="Case-insensitive text search"),
    category: str | None = None,
    rarity: str | None = None,
):
    found = filter_sessions(search_sessions(STORE.list(), q), category=category, rarity=rarity)
    return {"sessions": [session_to_dict(s) for s in found]}

@app.get("/sessions/{session_id}")
def sessions_get(session_id: str):
    s = STORE.find(session_id)
    if not s:
        raise HTTPException(404, "session not found")
    return session_to_dict(s)

@app.post("/sessions/{session_id}/vault")
def sessions_append_vault(session_id: str, req: VaultAppendReq):
    try:
        return session_to_dict(append_vault_content(STORE, session_id, req.content))
    except SessionNotFound:
        raise HTTPException(404, "session not found")

@app.get("/sessions/{session_id}/export.md")
def sessions_export_md(session_id: str):
    s = STORE.find(session_id)
    if not s or not s.vault_content:
        raise HTTPException(404, "no vault entry for session")
    return Response(
        content=s.vault_content,
        media_type="text/markdown",
        headers={"Content-Disposition": f"attachment; filename=\"{markdown_filename(s)}\""},
    )

@app.get("/vault/export.json")
def vault_export_json():
    if not VAULT_EXPORT_ENABLED:
        raise HTTPException(404, "vault export disabled")
    return Response(
        content=vault_to_json(STORE.list()),
        media_type="application/json",
        headers={"Content-Disposition": "attachment; filename=\"knowledge-vault.json\""},
    )

@app.get("/vault/export.csv")
def vault_export_csv():
    if not VAULT_EXPORT_ENABLED:
        raise HTTPException(404, "vault export disabled")
    return Response(
        content=vault_to_csv(STORE.list()),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=\"knowledge-vault.csv\""},
    )

@app.delete("/vault")
def vault_clear():
    STORE.clear()
    return {"ok": True}

# ---- Constellation ----
@app.get("/constellation")
def constellation():
    return {"nodes": [_node_view(n) for n in STORE.list_nodes()]}

@app.get("/stats")
def stats():
    return vault_stats(STORE.list())
