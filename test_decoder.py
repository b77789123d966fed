import pytest

from decoder import ResponseDecoder, decode_string
from errors import DecodeError
from models import (
    Category,
    EncodingMode,
    QuestionDifficulty,
    QuestionType,
    ResponseCode,
)


VIDEO_GAMES_BATCH = {
    "response_code": 0,
    "results": [
        {
            "type": "multiple",
            "difficulty": "easy",
            "category": "Entertainment: Video Games",
            "question": "Which franchise does the creature &quot;Slowpoke&quot; originate from?",
            "correct_answer": "Pokemon",
            "incorrect_answers": ["Dragon Ball", "Sonic The Hedgehog", "Yugioh"],
        },
        {
            "type": "multiple",
            "difficulty": "medium",
            "category": "Entertainment: Video Games",
            "question": "What is the name of the island introduced in the ARMA III: APEX expansion pack?",
            "correct_answer": "Tanoa",
            "incorrect_answers": ["Altis", "Stratis", "Malden"],
        },
        {
            "type": "boolean",
            "difficulty": "hard",
            "category": "Science &amp; Nature",
            "question": "The sun is a star.",
            "correct_answer": "True",
            "incorrect_answers": ["False"],
        },
    ],
}

BASE64_BATCH = {
    "response_code": 0,
    "results": [
        {
            "type": "bXVsdGlwbGU=",
            "difficulty": "ZWFzeQ==",
            "category": "RW50ZXJ0YWlubWVudDogQ2FydG9vbiAmIEFuaW1hdGlvbnM=",
            "question": "V2hpY2ggZnJhbmNoaXNlIGRvZXMgdGhlIGNyZWF0dXJlICJTbG93cG9rZSIgb3JpZ2luYXRlIGZyb20/",
            "correct_answer": "UG9rZW1vbg==",
            "incorrect_answers": ["RHJhZ29uIEJhbGw=", "WXVnaW9o"],
        },
        {
            "type": "Ym9vbGVhbg==",
            "difficulty": "aGFyZA==",
            "category": "U2NpZW5jZSAmIE5hdHVyZQ==",
            "question": "VGhlIHN1biBpcyBhIHN0YXIu",
            "correct_answer": "VHJ1ZQ==",
            "incorrect_answers": ["RmFsc2U="],
        },
    ],
}


# =========================
# Questions
# =========================

def test_decode_questions_maps_tags_and_keeps_raw_strings():
    questions = ResponseDecoder().decode_questions(VIDEO_GAMES_BATCH)

    assert len(questions) == 3
    assert questions[0].question == "Which franchise does the creature &quot;Slowpoke&quot; originate from?"
    assert questions[0].correct_answer == "Pokemon"
    assert questions[0].incorrect_answers == ["Dragon Ball", "Sonic The Hedgehog", "Yugioh"]

    assert [q.type for q in questions] == [
        QuestionType.MULTIPLE_CHOICE,
        QuestionType.MULTIPLE_CHOICE,
        QuestionType.TRUE_FALSE,
    ]
    assert [q.difficulty for q in questions] == [
        QuestionDifficulty.EASY,
        QuestionDifficulty.MEDIUM,
        QuestionDifficulty.HARD,
    ]


def test_default_decoding_unescapes_html_entities():
    questions = ResponseDecoder().decode_questions(VIDEO_GAMES_BATCH, EncodingMode.DEFAULT)

    assert questions[0].question == 'Which franchise does the creature "Slowpoke" originate from?'
    assert questions[2].category.name == "Science & Nature"


def test_shared_category_name_yields_identical_instance():
    questions = ResponseDecoder().decode_questions(VIDEO_GAMES_BATCH)

    assert questions[0].category is questions[1].category
    assert questions[0].category.id == 1
    assert questions[2].category.id == 2
    assert questions[2].category is not questions[0].category


def test_synthetic_ids_without_interning_start_at_one_per_batch():
    decoder = ResponseDecoder(intern_categories=False)

    first = decoder.decode_questions(VIDEO_GAMES_BATCH)
    second = decoder.decode_questions(VIDEO_GAMES_BATCH)

    assert first[0].category.id == second[0].category.id == 1
    assert first[0].category is not second[0].category


def test_interned_category_is_reused_across_batches():
    decoder = ResponseDecoder()

    first = decoder.decode_questions(VIDEO_GAMES_BATCH)
    second = decoder.decode_questions(VIDEO_GAMES_BATCH)

    assert first[0].category is second[0].category
    assert decoder.cached_category("Entertainment: Video Games") is first[0].category


def test_category_list_ids_take_precedence_in_question_batches():
    decoder = ResponseDecoder()
    decoder.decode_categories(
        {"trivia_categories": [{"id": 15, "name": "Entertainment: Video Games"}]}
    )

    questions = decoder.decode_questions(VIDEO_GAMES_BATCH)

    assert questions[0].category.id == 15
    # first unseen name still gets the first synthetic id
    assert questions[2].category.id == 1


def test_base64_tags_match_without_general_decoding():
    questions = ResponseDecoder().decode_questions(BASE64_BATCH)

    assert questions[0].type == QuestionType.MULTIPLE_CHOICE
    assert questions[0].difficulty == QuestionDifficulty.EASY
    assert questions[1].type == QuestionType.TRUE_FALSE
    assert questions[1].difficulty == QuestionDifficulty.HARD
    assert questions[0].correct_answer == "UG9rZW1vbg=="


def test_base64_decoding_decodes_every_string():
    questions = ResponseDecoder().decode_questions(BASE64_BATCH, EncodingMode.BASE64)

    assert questions[0].type == QuestionType.MULTIPLE_CHOICE
    assert questions[0].category.name == "Entertainment: Cartoon & Animations"
    assert questions[0].question == 'Which franchise does the creature "Slowpoke" originate from?'
    assert questions[0].correct_answer == "Pokemon"
    assert questions[0].incorrect_answers == ["Dragon Ball", "Yugioh"]
    assert questions[1].category.name == "Science & Nature"


def test_url_decoding():
    document = {
        "results": [
            {
                "type": "boolean",
                "difficulty": "medium",
                "category": "Science%20%26%20Nature",
                "question": "Is%20water%20wet%3F",
                "correct_answer": "True",
                "incorrect_answers": ["False"],
            }
        ]
    }

    question = ResponseDecoder().decode_questions(document, EncodingMode.URL3986)[0]

    assert question.category.name == "Science & Nature"
    assert question.question == "Is water wet?"


@pytest.mark.parametrize("document", [{"response_code": 0}, {"results": []}, {"results": None}])
def test_missing_or_empty_results_decode_to_empty_list(document):
    assert ResponseDecoder().decode_questions(document) == []


def test_unknown_type_raises():
    document = {"results": [dict(VIDEO_GAMES_BATCH["results"][0], type="essay")]}

    with pytest.raises(DecodeError, match="Unknown question type"):
        ResponseDecoder().decode_questions(document)


def test_unknown_difficulty_raises():
    document = {"results": [dict(VIDEO_GAMES_BATCH["results"][0], difficulty="extreme")]}

    with pytest.raises(DecodeError, match="Unknown question difficulty"):
        ResponseDecoder().decode_questions(document)


def test_missing_required_question_field_raises():
    entry = dict(VIDEO_GAMES_BATCH["results"][0])
    del entry["correct_answer"]

    with pytest.raises(DecodeError):
        ResponseDecoder().decode_questions({"results": [entry]})


def test_missing_category_decodes_to_empty_name():
    entry = dict(VIDEO_GAMES_BATCH["results"][0])
    del entry["category"]

    question = ResponseDecoder().decode_questions({"results": [entry]})[0]

    assert question.category == Category(id=1, name="")


# =========================
# Categories
# =========================

def test_decode_categories():
    categories = ResponseDecoder().decode_categories(
        {
            "trivia_categories": [
                {"id": 9, "name": "General Knowledge"},
                {"id": 10, "name": "Entertainment: Books"},
            ]
        }
    )

    assert categories == [
        Category(id=9, name="General Knowledge"),
        Category(id=10, name="Entertainment: Books"),
    ]


@pytest.mark.parametrize("document", [{}, {"trivia_categories": []}])
def test_decode_categories_empty(document):
    assert ResponseDecoder().decode_categories(document) == []


@pytest.mark.parametrize(
    "entry",
    [
        {"name": "General Knowledge"},
        {"id": "9", "name": "General Knowledge"},
        {"id": 9},
        {"id": 9, "name": 9},
    ],
)
def test_decode_categories_wrong_shape_raises(entry):
    with pytest.raises(DecodeError):
        ResponseDecoder().decode_categories({"trivia_categories": [entry]})


# =========================
# Tokens, Counts, Response Codes
# =========================

def test_decode_session_token():
    decoder = ResponseDecoder()

    assert decoder.decode_session_token({"response_code": 0, "token": "abc123"}).value == "abc123"
    assert decoder.decode_session_token({"response_code": 3}).value == ""
    assert decoder.decode_session_token({"token": 42}).value == ""


def test_decode_question_count():
    count = ResponseDecoder().decode_question_count(
        {
            "category_id": 9,
            "category_question_count": {
                "total_question_count": 100,
                "total_easy_question_count": 50,
                "total_medium_question_count": 30,
                "total_hard_question_count": 20,
            },
        }
    )

    assert (count.total, count.easy, count.medium, count.hard) == (100, 50, 30, 20)


def test_decode_question_count_empty_document_raises():
    with pytest.raises(DecodeError):
        ResponseDecoder().decode_question_count({})


def test_decode_question_count_non_numeric_field_raises():
    document = {
        "category_question_count": {
            "total_question_count": "100",
            "total_easy_question_count": 50,
            "total_medium_question_count": 30,
            "total_hard_question_count": 20,
        }
    }

    with pytest.raises(DecodeError):
        ResponseDecoder().decode_question_count(document)


@pytest.mark.parametrize(
    "document, expected",
    [
        ({"response_code": 0}, ResponseCode.SUCCESS),
        ({"response_code": 5}, ResponseCode.RATE_LIMIT),
        ({"response_code": 999}, ResponseCode.UNKNOWN),
        ({"response_code": -1}, ResponseCode.UNKNOWN),
        ({"response_code": None}, ResponseCode.UNKNOWN),
        ({"response_code": "not_a_number"}, ResponseCode.UNKNOWN),
        ({"response_code": True}, ResponseCode.UNKNOWN),
        ({}, ResponseCode.UNKNOWN),
    ],
)
def test_get_response_code(document, expected):
    assert ResponseDecoder().get_response_code(document) == expected


def test_decode_string_without_mode_is_passthrough():
    assert decode_string("a%20b&amp;", None) == "a%20b&amp;"
