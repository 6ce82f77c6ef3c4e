from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Literal, Optional, Sequence

from .errors import MalformedTrial, OutOfRangeDifficulty

Rarity = Literal["normal", "rare", "legendary", "unique"]
RARITIES: tuple[str, ...] = ("normal", "rare", "legendary", "unique")
MessageType = Literal["user", "ai", "system"]


@dataclass(frozen=True)
class Difficulty:
    level: int
    name: str
    description: str


DIFFICULTIES: tuple[Difficulty, ...] = (
    Difficulty(1, "I'm Too Young to Die", "Beginner friendly introduction"),
    Difficulty(2, "Hey, Not Too Rough", "Basic concepts and examples"),
    Difficulty(3, "Hurt Me Plenty", "Intermediate depth and complexity"),
    Difficulty(4, "Ultra-Violence", "Advanced topics and nuances"),
    Difficulty(5, "Nightmare", "Expert level analysis"),
)
MIN_DIFFICULTY: int = 1
MAX_DIFFICULTY: int = 5


def check_difficulty(level: object) -> int:
    # bool is an int subclass; True must not pass as level 1
    if isinstance(level, bool) or not isinstance(level, int):
        raise OutOfRangeDifficulty(level)
    if not MIN_DIFFICULTY <= level <= MAX_DIFFICULTY:
        raise OutOfRangeDifficulty(level)
    return level


def difficulty_for(level: object) -> Difficulty:
    return DIFFICULTIES[check_difficulty(level) - 1]


class Category(str, Enum):
    SCIENCES = "Sciences"
    MATHEMATICS = "Mathematics"
    TECHNOLOGY = "Technology"
    HUMANITIES = "Humanities"
    ARTS = "Arts"
    SKILLS = "Skills"
    LANGUAGES = "Languages"

    @classmethod
    def parse(cls, raw: object) -> "Category":
        """Match a category name case-insensitively; anything unknown is Skills."""
        if isinstance(raw, cls):
            return raw
        s = str(raw or "").strip().lower()
        for c in cls:
            if c.value.lower() == s:
                return c
        return cls.SKILLS


@dataclass(frozen=True)
class QuizQuestion:
    question: str
    options: List[str]
    correct_answer: int
    user_answer: Optional[int] = None


@dataclass(frozen=True)
class LightningStatement:
    statement: str
    is_true: bool
    user_answer: Optional[bool] = None


def _check_tally(kind: str, correct: int, total: int, answers: Sequence[bool]) -> None:
    if correct < 0 or total < 0:
        raise MalformedTrial(f"{kind}: counts must be non-negative ({correct}/{total})")
    if correct > total:
        raise MalformedTrial(f"{kind}: {correct} correct out of {total} questions")
    if answers:
        if len(answers) != total:
            raise MalformedTrial(f"{kind}: {len(answers)} answers for {total} questions")
        if sum(1 for a in answers if a) != correct:
            raise MalformedTrial(f"{kind}: correct_count does not match answers")


@dataclass(frozen=True)
class ArticulationResult:
    score: float
    text: str = ""
    feedback: str = ""

    def __post_init__(self):
        if not 0 <= self.score <= 10:
            raise MalformedTrial(f"articulation: score {self.score} outside 0..10")


@dataclass(frozen=True)
class GauntletResult:
    correct_count: int
    total_questions: int
    answers: List[bool] = field(default_factory=list)
    questions: List[QuizQuestion] = field(default_factory=list)

    def __post_init__(self):
        _check_tally("gauntlet", self.correct_count, self.total_questions, self.answers)

    @property
    def score(self) -> int:
        return self.correct_count

    @classmethod
    def from_answers(cls, answers: Sequence[bool], questions: Sequence[QuizQuestion] = ()) -> "GauntletResult":
        a = [bool(x) for x in answers]
        return cls(sum(a), len(a), a, list(questions))


@dataclass(frozen=True)
class LightningResult:
    correct_count: int
    total_questions: int
    time_bonus: int = 0
    answers: List[bool] = field(default_factory=list)
    questions: List[LightningStatement] = field(default_factory=list)

    def __post_init__(self):
        _check_tally("lightning", self.correct_count, self.total_questions, self.answers)
        if self.time_bonus < 0:
            raise MalformedTrial(f"lightning: negative time_bonus {self.time_bonus}")

    @property
    def score(self) -> int:
        return self.correct_count

    @classmethod
    def from_answers(
        cls,
        answers: Sequence[bool],
        time_bonus: int = 0,
        questions: Sequence[LightningStatement] = (),
    ) -> "LightningResult":
        a = [bool(x) for x in answers]
        return cls(sum(a), len(a), int(time_bonus), a, list(questions))


@dataclass(frozen=True)
class TrialRecord:
    articulation: ArticulationResult
    gauntlet: GauntletResult
    lightning: LightningResult

    @property
    def well_formed(self) -> bool:
        return self.gauntlet.total_questions > 0 and self.lightning.total_questions > 0


@dataclass(frozen=True)
class RarityOutcome:
    rarity: Rarity
    final_score: float


@dataclass(frozen=True)
class ChatMessage:
    id: str
    type: MessageType
    content: str
    timestamp: str


@dataclass(frozen=True)
class LearningSession:
    id: str
    topic: str
    date: str
    difficulty: int
    difficulty_name: str
    category: Category
    rarity: Rarity
    final_score: float
    trials: Optional[TrialRecord] = None
    ai_explanation: str = ""
    vault_content: str = ""
    chat_history: List[ChatMessage] = field(default_factory=list)


@dataclass(frozen=True)
class ConstellationNode:
    id: str
    topic: str
    category: Category
    difficulty: int
    rarity: Rarity
    x: float
    y: float
    connections: List[str] = field(default_factory=list)
