from __future__ import annotations
import argparse, logging, os, time
from quest_core import llm_bridge
from quest_core.config import LIGHTNING_SECONDS, get_backend
from quest_core.errors import OracleError
from quest_core.rarity import thresholds
from quest_core.scoring import articulation, format_clock, grade_gauntlet, grade_lightning
from quest_core.session import complete_session, new_message
from quest_core.store import InMemorySessionStore
from quest_core.types import DIFFICULTIES, TrialRecord

def choose_backend(llm: str | None) -> str | None:
    """Backend for the quest, or None; quiz and lightning rounds have no offline source."""
    if llm: os.environ["LLM_BACKEND"] = llm
    b = get_backend()
    if b != "none": print(f"Using backend: {b}"); return b
    print("Choose LLM backend: [1] OpenAI  [2] Azure")
    c = input("Your choice: ").strip()
    if c == "1": os.environ["LLM_BACKEND"] = "openai"
    elif c == "2": os.environ["LLM_BACKEND"] = "azure"
    else: return None
    return get_backend()

def ask_index(prompt: str, n: int) -> int | None:
    while True:
        v = input(prompt).strip()
        if v == "": return None
        if v.isdigit() and 0 <= int(v) < n: return int(v)
        print(f"Enter a number 0..{n-1}.")

def ask_bool(prompt: str) -> bool | None:
    v = input(prompt).strip().lower()
    if v in ("t", "true", "y", "1"): return True
    if v in ("f", "false", "n", "0"): return False
    return None

def lightning_round(statements, seconds: int, clock=time.monotonic) -> tuple[list[bool | None], float]:
    """Ask statements until the clock runs out; an answer typed after the deadline is dropped."""
    deadline = clock() + seconds
    calls: list[bool | None] = []
    for st in statements:
        left = deadline - clock()
        if left <= 0: print("Time's up!"); break
        ans = ask_bool(f"[{format_clock(int(left))}] {st.statement} (t/f): ")
        if clock() > deadline: print("Time's up! Last answer not counted."); break
        calls.append(ans)
    return calls, max(0.0, deadline - clock())

def choose_difficulty(default: int | None) -> int:
    if default: return default
    for d in DIFFICULTIES: print(f"  [{d.level}] {d.name} - {d.description}")
    while True:
        v = input("Difficulty (1-5): ").strip()
        if v.isdigit() and 1 <= int(v) <= 5: return int(v)

def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Run one knowledge quest in the terminal.")
    ap.add_argument("--topic")
    ap.add_argument("--difficulty", type=int, choices=range(1, 6))
    ap.add_argument("--llm", choices=["openai", "azure"])
    ap.add_argument("--save", action="store_true", help="persist to DATA_DIR instead of memory")
    a = ap.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    if choose_backend(a.llm) is None:
        print("ERROR: a quest needs an LLM backend (set OPENAI_API_KEY or the AZURE_OPENAI_* settings)."); return 1
    topic = a.topic or input("Topic to learn: ").strip()
    level = choose_difficulty(a.difficulty)
    history = [new_message("user", topic)]
    try:
        explanation = llm_bridge.explain_topic(topic, level)
        quiz = llm_bridge.generate_quiz(topic, level)
        statements = llm_bridge.generate_lightning_round(topic)
    except OracleError as e:
        print(f"ERROR: {e}"); return 1
    print("\n" + explanation + "\n")
    history.append(new_message("ai", explanation))

    print("=== Trial 1: Articulation ===")
    text = input("Explain the topic in your own words: ").strip()
    score, feedback = llm_bridge.evaluate_explanation(topic, text)
    print(f"Score {score}/10. {feedback}")

    print("\n=== Trial 2: Gauntlet ===")
    picks: list[int | None] = []
    for i, q in enumerate(quiz, 1):
        print(f"\nQ{i}. {q.question}")
        for j, opt in enumerate(q.options): print(f"  [{j}] {opt}")
        picks.append(ask_index("Answer: ", len(q.options)))
    gauntlet = grade_gauntlet(quiz, picks)
    print(f"Gauntlet: {gauntlet.correct_count}/{gauntlet.total_questions}")

    print(f"\n=== Trial 3: Lightning ({format_clock(LIGHTNING_SECONDS)}) ===")
    calls, remaining = lightning_round(statements, LIGHTNING_SECONDS)
    lightning = grade_lightning(statements, calls, remaining)

    trial = TrialRecord(articulation(score, text, feedback), gauntlet, lightning)
    if a.save:
        from api.storage import JsonSessionStore
        store = JsonSessionStore()
    else:
        store = InMemorySessionStore()
    category, related = llm_bridge.categorize_topic(topic)
    session = complete_session(
        store, topic=topic, difficulty=level, trial=trial, category=category,
        ai_explanation=explanation, chat_history=history, connections=related,
        vault_writer=llm_bridge.create_vault_entry,
    )
    t = thresholds(level)
    print(f"\nTrials completed! Rarity achieved: {session.rarity.upper()}")
    print(f"Final score: {session.final_score:.2f}/10  (rare {t['rare']}, legendary {t['legendary']}, unique {t['unique']})")
    return 0

if __name__ == "__main__": raise SystemExit(main())
