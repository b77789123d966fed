from enum import Enum, IntEnum
from typing import Iterable, List, Tuple

from pydantic import BaseModel, ConfigDict


# =========================
# Upstream Enumerations
# =========================

class ResponseCode(IntEnum):
    """
    Semantic result code reported by the upstream in `response_code`.
    Values are the upstream contract and must not be renumbered.
    """
    UNKNOWN = -1
    SUCCESS = 0
    NO_RESULTS = 1         # not enough questions for the query
    INVALID_PARAMETER = 2
    TOKEN_NOT_FOUND = 3
    TOKEN_EMPTY = 4        # token has served every question; reset it
    RATE_LIMIT = 5         # one request per IP every 5 seconds


class EncodingMode(str, Enum):
    DEFAULT = "default"
    URL3986 = "url3986"
    BASE64 = "base64"


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple"
    TRUE_FALSE = "boolean"


class QuestionDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# =========================
# Domain Objects
# =========================

class Category(BaseModel):
    """
    Trivia category. Immutable; one instance is shared by every
    question decoded with the same category name.
    """
    model_config = ConfigDict(frozen=True)

    id: int
    name: str

    def __str__(self) -> str:
        return self.name


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: Category
    type: QuestionType
    difficulty: QuestionDifficulty
    question: str
    correct_answer: str
    incorrect_answers: List[str]


class SessionToken(BaseModel):
    """
    Opaque session token used to avoid repeated questions.
    Empty string is a valid value.
    """
    model_config = ConfigDict(frozen=True)

    value: str = ""

    def __str__(self) -> str:
        return self.value


class QuestionCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int
    easy: int
    medium: int
    hard: int


class TriviaGame(BaseModel):
    """
    Immutable set of questions together with the categories they draw on.
    """
    model_config = ConfigDict(frozen=True)

    questions: Tuple[Question, ...]
    categories: Tuple[Category, ...]

    @classmethod
    def from_questions(cls, questions: Iterable[Question]) -> "TriviaGame":
        questions = tuple(questions)

        categories: List[Category] = []
        seen = set()
        for q in questions:
            # synthetic ids restart per batch, so the id alone is not unique
            key = (q.category.id, q.category.name)
            if key not in seen:
                seen.add(key)
                categories.append(q.category)

        return cls(questions=questions, categories=tuple(categories))
