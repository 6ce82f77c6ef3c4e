from __future__ import annotations
import json, logging, time
from typing import Any, Dict, List, Tuple

from .config import GAUNTLET_QUESTIONS, LIGHTNING_STATEMENTS, get_backend
from .errors import OracleError
from .heuristics import heuristic_explanation_score
from .oracle_cfg import client_and_model
from .types import Category, LearningSession, LightningStatement, QuizQuestion, check_difficulty

log = logging.getLogger(__name__)

_DIFFICULTY_CONTEXT = (
    "beginner level with simple explanations and basic examples",
    "introductory level with clear concepts and practical examples",
    "intermediate level with detailed explanations and real-world applications",
    "advanced level with complex concepts and technical depth",
    "expert level with comprehensive analysis and cutting-edge insights",
)


def backend_in_use() -> str:
    return get_backend()


def _chat(system: str, user: str, *, json_mode: bool, temperature: float, max_tokens: int | None = None) -> str:
    cli, model = client_and_model()
    kwargs: Dict[str, Any] = {
        "model": model,
        "messages": [{"role": "system", "content": system}, {"role": "user", "content": user}],
        "temperature": temperature,
    }
    if max_tokens: kwargs["max_tokens"] = max_tokens
    if json_mode: kwargs["response_format"] = {"type": "json_object"}
    resp = cli.chat.completions.create(**kwargs)
    return resp.choices[0].message.content or ""


def _call(operation: str, system: str, user: str, **kw) -> str:
    t0 = time.time()
    try:
        out = _chat(system, user, **kw)
    except Exception as e:  # SDK, network and config errors all surface as OracleError
        log.warning("oracle %s failed: %s", operation, e)
        raise OracleError(operation, str(e)) from e
    log.info("oracle %s ok in %d ms", operation, int((time.time() - t0) * 1000))
    return out


def _call_json(operation: str, system: str, user: str, **kw) -> Dict[str, Any]:
    raw = _call(operation, system, user, json_mode=True, **kw)
    try:
        data = json.loads(raw or "{}")
    except ValueError as e:
        raise OracleError(operation, f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise OracleError(operation, "expected a JSON object")
    return data


def explain_topic(topic: str, difficulty: int) -> str:
    level = check_difficulty(difficulty)
    prompt = (
        f'You are an expert teacher explaining "{topic}" at {_DIFFICULTY_CONTEXT[level - 1]}.\n\n'
        "Provide a comprehensive explanation that includes:\n"
        "1. Clear definition and core concepts\n"
        "2. Key principles and how they work\n"
        "3. Real-world examples and applications\n"
        "4. Important terminology\n"
        "5. Common misconceptions to avoid\n\n"
        "Format your response as clear, engaging content suitable for learning. "
        "Make it thorough but accessible for the specified difficulty level."
    )
    text = _call(
        "explain",
        "You are an expert educator who explains complex topics clearly and engagingly.",
        prompt, json_mode=False, temperature=0.7, max_tokens=1000,
    ).strip()
    if not text:
        raise OracleError("explain", "empty explanation")
    return text


def evaluate_explanation(topic: str, text: str) -> Tuple[float, str]:
    """Grade a learner's explanation 1-10; falls back to the local heuristic."""
    if backend_in_use() == "none":
        s = heuristic_explanation_score(topic, text)
        return s, "Scored offline by heuristic: no LLM backend configured."
    prompt = (
        f'Evaluate this student\'s explanation of "{topic}":\n\n"{text}"\n\n'
        "Provide a score from 1-10 and specific feedback. Respond in JSON format:\n"
        '{\n  "score": number,\n  "feedback": "detailed constructive feedback"\n}\n\n'
        "Scoring criteria:\n"
        "- Accuracy of information (40%)\n"
        "- Completeness of explanation (30%)\n"
        "- Clarity and organization (20%)\n"
        "- Use of appropriate terminology (10%)"
    )
    try:
        data = _call_json(
            "evaluate",
            "You are an expert educator who provides fair, constructive assessment.",
            prompt, temperature=0.3,
        )
        score = float(data.get("score", 0))
        feedback = str(data.get("feedback") or "")
    except (OracleError, TypeError, ValueError) as e:
        log.warning("evaluate fell back to heuristic: %s", e)
        return heuristic_explanation_score(topic, text), "Scored offline by heuristic: evaluator unavailable."
    return max(1.0, min(10.0, score)), feedback


def _parse_questions(items: Any) -> List[QuizQuestion]:
    out: List[QuizQuestion] = []
    for q in items if isinstance(items, list) else []:
        if not isinstance(q, dict): continue
        opts = q.get("options")
        try:
            idx = int(q.get("correctAnswer"))
        except (TypeError, ValueError):
            continue
        if not isinstance(opts, list) or not opts or not 0 <= idx < len(opts): continue
        text = str(q.get("question") or "").strip()
        if not text: continue
        out.append(QuizQuestion(question=text, options=[str(o) for o in opts], correct_answer=idx))
    return out


def _parse_statements(items: Any) -> List[LightningStatement]:
    out: List[LightningStatement] = []
    for s in items if isinstance(items, list) else []:
        if not isinstance(s, dict) or not isinstance(s.get("isTrue"), bool): continue
        text = str(s.get("statement") or "").strip()
        if text:
            out.append(LightningStatement(statement=text, is_true=s["isTrue"]))
    return out


def generate_quiz(topic: str, difficulty: int, count: int = GAUNTLET_QUESTIONS) -> List[QuizQuestion]:
    level = check_difficulty(difficulty)
    prompt = (
        f'Create {count} multiple choice questions about "{topic}" for difficulty level {level}.\n\n'
        "Each question should have 4 options with exactly one correct answer.\n"
        "Respond in JSON format:\n"
        '{\n  "questions": [\n    {\n      "question": "question text",\n'
        '      "options": ["option 1", "option 2", "option 3", "option 4"],\n'
        '      "correctAnswer": 0\n    }\n  ]\n}\n\n'
        "Make questions progressively challenging and cover key concepts."
    )
    data = _call_json(
        "quiz", "You are an expert quiz creator who designs fair, educational assessments.",
        prompt, temperature=0.5,
    )
    qs = _parse_questions(data.get("questions"))
    if not qs:
        raise OracleError("quiz", "no usable questions")
    return qs


def generate_lightning_round(topic: str, count: int = LIGHTNING_STATEMENTS) -> List[LightningStatement]:
    prompt = (
        f'Create {count} true/false statements about "{topic}".\n\n'
        "Mix obvious facts with nuanced points to test deep understanding.\n"
        "Respond in JSON format:\n"
        '{\n  "statements": [\n    {\n      "statement": "statement text",\n      "isTrue": true\n    }\n  ]\n}\n\n'
        "Include a variety of difficulty levels from basic facts to subtle distinctions."
    )
    data = _call_json(
        "lightning", "You are an expert educator creating rapid-fire assessment questions.",
        prompt, temperature=0.6,
    )
    sts = _parse_statements(data.get("statements"))
    if not sts:
        raise OracleError("lightning", "no usable statements")
    return sts


def create_vault_entry(session: LearningSession) -> str:
    prompt = (
        "Create a comprehensive markdown summary for this learning session:\n\n"
        f"Topic: {session.topic}\n"
        f"Difficulty: {session.difficulty_name}\n"
        f"Category: {session.category.value}\n"
        f"Rarity: {session.rarity}\n"
        f"Final Score: {session.final_score}\n\n"
        "Include the AI explanation, user understanding, trial results, and create connections to related topics.\n\n"
        "Format as a detailed markdown document suitable for a knowledge vault."
    )
    return _call(
        "vault", "You are creating a comprehensive knowledge archive entry.",
        prompt, json_mode=False, temperature=0.4, max_tokens=1500,
    ).strip()


def categorize_topic(topic: str) -> Tuple[Category, List[str]]:
    """Category plus 3-5 related topics; any failure means (Skills, [])."""
    prompt = (
        f'Analyze this topic: "{topic}"\n\n'
        "Determine:\n"
        "1. Which category it belongs to: " + ", ".join(c.value for c in Category) + "\n"
        "2. List 3-5 related topics that would connect to this in a knowledge graph\n\n"
        "Respond in JSON format:\n"
        '{\n  "category": "category name",\n  "connections": ["related topic 1", "related topic 2", ...]\n}'
    )
    try:
        data = _call_json(
            "categorize", "You are an expert knowledge organizer and topic categorization specialist.",
            prompt, temperature=0.3,
        )
    except OracleError:
        return Category.SKILLS, []
    conns = data.get("connections")
    connections = [str(c).strip() for c in conns if str(c).strip()] if isinstance(conns, list) else []
    return Category.parse(data.get("category")), connections
