import base64
import binascii
import html
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import unquote

from errors import DecodeError
from models import (
    Category,
    EncodingMode,
    Question,
    QuestionCount,
    QuestionDifficulty,
    QuestionType,
    ResponseCode,
    SessionToken,
)


# =========================
# Tag Tables
# =========================

# Tags may arrive as base64 literals even when general string decoding
# is not applied, so both forms are matched.
# TODO: decode scalar tags uniformly before matching and drop the literal rows
QUESTION_TYPES: Dict[str, QuestionType] = {
    "multiple": QuestionType.MULTIPLE_CHOICE,
    "boolean": QuestionType.TRUE_FALSE,
    "bXVsdGlwbGU=": QuestionType.MULTIPLE_CHOICE,
    "Ym9vbGVhbg==": QuestionType.TRUE_FALSE,
}

QUESTION_DIFFICULTIES: Dict[str, QuestionDifficulty] = {
    "easy": QuestionDifficulty.EASY,
    "medium": QuestionDifficulty.MEDIUM,
    "hard": QuestionDifficulty.HARD,
    "ZWFzeQ==": QuestionDifficulty.EASY,
    "bWVkaXVt": QuestionDifficulty.MEDIUM,
    "aGFyZA==": QuestionDifficulty.HARD,
}

QUESTION_COUNT_FIELDS = {
    "total": "total_question_count",
    "easy": "total_easy_question_count",
    "medium": "total_medium_question_count",
    "hard": "total_hard_question_count",
}

_RESPONSE_CODES = {code.value for code in ResponseCode}


# =========================
# Helpers
# =========================

def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _base64_decode(value: str) -> str:
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise DecodeError(f"Invalid base64 value: {value!r}") from e


_DECODERS: Dict[EncodingMode, Callable[[str], str]] = {
    EncodingMode.URL3986: unquote,
    EncodingMode.BASE64: _base64_decode,
}


def decode_string(value: str, decoding: Optional[EncodingMode] = None) -> str:
    """
    Apply one string transform.

    - None: unchanged (caller wants the encoded wire form)
    - URL3986: percent unescape
    - BASE64: base64 -> UTF-8
    - DEFAULT: HTML entity decode
    """
    if decoding is None:
        return value

    return _DECODERS.get(decoding, html.unescape)(value)


def _require(element: Dict[str, Any], key: str) -> Any:
    if key not in element:
        raise DecodeError(f"Missing required field: {key}")
    return element[key]


def _require_str(element: Dict[str, Any], key: str) -> str:
    value = _require(element, key)
    if not isinstance(value, str):
        raise DecodeError(f"Field {key} must be a string, got {type(value).__name__}")
    return value


def _require_int(element: Dict[str, Any], key: str) -> int:
    value = _require(element, key)
    if not _is_int(value):
        raise DecodeError(f"Field {key} must be an integer, got {type(value).__name__}")
    return value


def _root(document: Any) -> Dict[str, Any]:
    if not isinstance(document, dict):
        raise DecodeError("Expected a JSON object at the document root")
    return document


# =========================
# Decoder
# =========================

class ResponseDecoder:
    """
    Turns upstream JSON documents into domain objects.

    The category cache maps names to Category instances for the lifetime
    of the decoder. It only grows; inserts are lock-protected.
    """

    def __init__(self, intern_categories: bool = True):
        self._categories_by_name: Optional[Dict[str, Category]] = {} if intern_categories else None
        self._lock = threading.Lock()

    def cached_category(self, name: str) -> Optional[Category]:
        if self._categories_by_name is None:
            return None
        return self._categories_by_name.get(name)

    def decode_session_token(self, document: Any) -> SessionToken:
        token = _root(document).get("token")
        return SessionToken(value=token if isinstance(token, str) else "")

    def decode_categories(self, document: Any) -> List[Category]:
        elements = _root(document).get("trivia_categories")
        if not isinstance(elements, list):
            return []

        categories: List[Category] = []
        for element in elements:
            if not isinstance(element, dict):
                raise DecodeError("Category entry must be an object")

            category = Category(
                id=_require_int(element, "id"),
                name=_require_str(element, "name"),
            )
            categories.append(category)

            # Authoritative ids replace anything minted from a question batch
            if self._categories_by_name is not None:
                with self._lock:
                    self._categories_by_name[category.name] = category

        return categories

    def decode_questions(
        self,
        document: Any,
        decoding: Optional[EncodingMode] = None,
    ) -> List[Question]:
        elements = _root(document).get("results")
        if not isinstance(elements, list):
            return []

        next_id = 1
        batch: Dict[str, Category] = {}
        questions: List[Question] = []

        for element in elements:
            if not isinstance(element, dict):
                raise DecodeError("Question entry must be an object")

            raw_category = element.get("category")
            name = decode_string(raw_category, decoding) if isinstance(raw_category, str) else ""

            category = batch.get(name)
            if category is None:
                category, next_id = self._intern(name, next_id)
                batch[name] = category

            raw_type = _require_str(element, "type")
            question_type = QUESTION_TYPES.get(decode_string(raw_type, decoding))
            if question_type is None:
                raise DecodeError(f"Unknown question type: {raw_type}")

            raw_difficulty = _require_str(element, "difficulty")
            difficulty = QUESTION_DIFFICULTIES.get(decode_string(raw_difficulty, decoding))
            if difficulty is None:
                raise DecodeError(f"Unknown question difficulty: {raw_difficulty}")

            incorrect = _require(element, "incorrect_answers")
            if not isinstance(incorrect, list) or not all(isinstance(a, str) for a in incorrect):
                raise DecodeError("Field incorrect_answers must be a list of strings")

            questions.append(
                Question(
                    category=category,
                    type=question_type,
                    difficulty=difficulty,
                    question=decode_string(_require_str(element, "question"), decoding),
                    correct_answer=decode_string(_require_str(element, "correct_answer"), decoding),
                    incorrect_answers=[decode_string(a, decoding) for a in incorrect],
                )
            )

        return questions

    def decode_question_count(self, document: Any) -> QuestionCount:
        counts = _root(document).get("category_question_count")
        if not isinstance(counts, dict):
            raise DecodeError(
                "Failed to decode trivia question count. The JSON structure may have changed."
            )

        return QuestionCount(
            **{field: _require_int(counts, key) for field, key in QUESTION_COUNT_FIELDS.items()}
        )

    def get_response_code(self, document: Any) -> ResponseCode:
        value = document.get("response_code") if isinstance(document, dict) else None
        if _is_int(value) and value in _RESPONSE_CODES:
            return ResponseCode(value)
        return ResponseCode.UNKNOWN

    def _intern(self, name: str, next_id: int) -> Tuple[Category, int]:
        """
        Resolve a category name seen for the first time in a batch.
        Returns the category and the next synthetic id.
        """
        if self._categories_by_name is None:
            return Category(id=next_id, name=name), next_id + 1

        with self._lock:
            category = self._categories_by_name.get(name)
            if category is not None:
                return category, next_id

            category = Category(id=next_id, name=name)
            self._categories_by_name[name] = category

        return category, next_id + 1
