from __future__ import annotations
import os, json, pathlib


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# scoring constants are fixed; no env overrides below this line
W_ARTICULATION: float = 0.4
W_GAUNTLET: float = 0.4
W_LIGHTNING: float = 0.2

DIFFICULTY_BONUS_PER_LEVEL: float = 0.5
SPEED_BONUS_PER_POINT: float = 0.1
SCORE_CEIL: float = 10.0
SCORE_DECIMALS: int = 2

THRESHOLD_PENALTY_PER_LEVEL: float = 0.3
BASE_THRESHOLDS: dict[str, float] = {"rare": 6.0, "legendary": 7.5, "unique": 9.0}
THRESHOLD_CAPS: dict[str, float] = {"rare": 8.5, "legendary": 9.0, "unique": 9.5}

MINUTES_PER_DIFFICULTY: int = 10

# trial shape; the engine never reads these, only question generation and timers do
GAUNTLET_QUESTIONS: int = 10
LIGHTNING_STATEMENTS: int = 20
LIGHTNING_SECONDS: int = 120
SECONDS_PER_BONUS_POINT: int = 6

VAULT_EXPORT_ENABLED: bool = True

OPENAI_MODEL: str = "gpt-4o-mini"
ORACLE_TIMEOUT_SEC: float = 30.0

# // env overrides for staging/ops
GAUNTLET_QUESTIONS = _env_int("GAUNTLET_QUESTIONS", GAUNTLET_QUESTIONS)
LIGHTNING_STATEMENTS = _env_int("LIGHTNING_STATEMENTS", LIGHTNING_STATEMENTS)
LIGHTNING_SECONDS = _env_int("LIGHTNING_SECONDS", LIGHTNING_SECONDS)
SECONDS_PER_BONUS_POINT = max(1, _env_int("SECONDS_PER_BONUS_POINT", SECONDS_PER_BONUS_POINT))
VAULT_EXPORT_ENABLED = _env_bool("VAULT_EXPORT_ENABLED", VAULT_EXPORT_ENABLED)
OPENAI_MODEL = os.getenv("OPENAI_MODEL", OPENAI_MODEL)
ORACLE_TIMEOUT_SEC = _env_float("ORACLE_TIMEOUT_SEC", ORACLE_TIMEOUT_SEC)


def load_config() -> dict:
    cfg: dict = {}
    p = pathlib.Path("config.json")
    if p.exists():
        try: cfg = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError): cfg = {}
    e = os.environ
    if e.get("LLM_BACKEND"): cfg["LLM_BACKEND"] = e.get("LLM_BACKEND")
    if e.get("OPENAI_MODEL"): cfg["OPENAI_MODEL"] = e.get("OPENAI_MODEL")
    for k in ("OPENAI_API_KEY", "AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_API_KEY",
              "AZURE_OPENAI_API_VERSION", "AZURE_OPENAI_DEPLOYMENT"):
        if e.get(k): cfg[k] = e.get(k)
    return cfg


def get_backend(cfg: dict | None = None) -> str:
    cfg = load_config() if cfg is None else cfg
    b = (cfg.get("LLM_BACKEND") or "").lower().strip()
    if b in ("openai", "azure"):
        return b
    if not b and cfg.get("OPENAI_API_KEY"):
        return "openai"
    return "none"
