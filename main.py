import logging
import time
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from aggregator import get_questions_for_categories
from client import OpenTriviaClient
from config import MAX_AMOUNT, settings
from models import Category, EncodingMode, QuestionDifficulty, QuestionType
from response import ApiResponse
from schemas import DataResponse, ErrorResponse, HealthResponse, StatusData, StatusResponse


# ======================================================
# App Setup
# ======================================================

app = FastAPI(title="OpenTrivia Service")

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("opentrivia.service")

trivia_client = OpenTriviaClient.from_settings(settings)

API_PREFIX = "/trivia/api/v1"


# ======================================================
# Request Context (Facts Only)
# ======================================================

class RequestContext(BaseModel):
    timestamp: str
    endpoint: str
    ip: str
    status_code: int
    response_code: Optional[int]
    latency_ms: int


def _log_request(request: Request, start_time: float, status_code: int, result: Optional[ApiResponse] = None):
    ctx = RequestContext(
        timestamp=datetime.utcnow().isoformat(),
        endpoint=request.url.path,
        ip=request.client.host if request.client else "unknown",
        status_code=status_code,
        response_code=int(result.response_code) if result is not None else None,
        latency_ms=int((time.monotonic() - start_time) * 1000),
    )
    logger.info(ctx.model_dump_json())


def _failure(result: ApiResponse) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error=result.error_message).model_dump(exclude_none=True),
    )


# ======================================================
# Lifecycle
# ======================================================

@app.on_event("shutdown")
async def shutdown():
    await trivia_client.aclose()


# ======================================================
# Health
# ======================================================

@app.get("/health", response_model=HealthResponse)
def health_check():
    return {"status": "ok"}


# ======================================================
# Trivia Endpoints
# ======================================================

@app.get(API_PREFIX)
async def get_status(request: Request):
    start_time = time.monotonic()

    result = await trivia_client.get_categories()
    count = len(result.data) if result.data is not None else 0

    body = StatusResponse(
        success=result.is_success,
        data=StatusData(
            categories=result.data if result.is_success else None,
            message=f"Service running; {count} categories available.",
        ),
    )

    _log_request(request, start_time, 200, result)
    return jsonable_encoder(body)


@app.get(f"{API_PREFIX}/categories")
async def get_categories(request: Request):
    start_time = time.monotonic()

    result = await trivia_client.get_categories()

    if not result.is_success:
        _log_request(request, start_time, 500, result)
        return _failure(result)

    _log_request(request, start_time, 200, result)
    return jsonable_encoder(DataResponse(data=result.data))


@app.get(f"{API_PREFIX}/questions")
async def get_questions(
    request: Request,
    amount: int = 0,
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    question_type: Optional[str] = Query(default=None, alias="type"),
    encode: Optional[str] = None,
):
    """
    Unrecognized difficulty / type values mean "any".
    `category` may be one id or a comma-separated list of ids.
    """
    start_time = time.monotonic()

    if amount < 1 or amount > MAX_AMOUNT:
        _log_request(request, start_time, 400)
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                message=f"Amount must be between 1 and {MAX_AMOUNT}."
            ).model_dump(exclude_none=True),
        )

    categories = parse_categories(category)
    trivia_difficulty = _parse_enum(QuestionDifficulty, difficulty)
    trivia_type = _parse_enum(QuestionType, question_type)
    encoding = parse_encoding(encode)

    if len(categories) > 1:
        result = await get_questions_for_categories(
            trivia_client,
            amount,
            categories,
            trivia_difficulty,
            trivia_type,
            encoding,
        )
    else:
        result = await trivia_client.get_questions(
            amount,
            categories[0] if categories else None,
            trivia_difficulty,
            trivia_type,
            encoding,
        )

    if not result.is_success:
        _log_request(request, start_time, 500, result)
        return _failure(result)

    _log_request(request, start_time, 200, result)
    return jsonable_encoder(DataResponse(data=result.data))


# ======================================================
# Utils
# ======================================================

def parse_categories(raw: Optional[str]) -> List[Category]:
    """
    Category ids from a query value. Non-numeric entries are ignored.
    """
    if not raw:
        return []

    return [
        Category(id=int(part), name="")
        for part in (p.strip() for p in raw.split(","))
        if part.isdigit()
    ]


def parse_encoding(raw: Optional[str]) -> Optional[EncodingMode]:
    if not raw or not raw.strip():
        return None

    value = raw.strip().lower()
    if value in (EncodingMode.URL3986.value, EncodingMode.BASE64.value):
        return EncodingMode(value)

    return EncodingMode.DEFAULT


def _parse_enum(enum_type, raw: Optional[str]):
    if not raw or not raw.strip():
        return None

    try:
        return enum_type(raw.strip().lower())
    except ValueError:
        return None
