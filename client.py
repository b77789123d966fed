import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

import cancellation
from config import (
    BASE_QUESTION_URL,
    CATEGORY_URL,
    COUNT_URL,
    MAX_AMOUNT,
    RATE_LIMIT_SECONDS,
    TOKEN_URL,
    Settings,
)
from decoder import ResponseDecoder
from errors import (
    ApiError,
    InvalidArgumentError,
    OperationCancelled,
    RequestCancelledError,
    ThrottleCancelledError,
)
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
from rate_limit import RateThrottle
from response import ApiResponse

logger = logging.getLogger("opentrivia.client")

T = TypeVar("T")

# Non-standard "client closed request"
CLIENT_CLOSED_REQUEST = 499


# =========================
# Request Building
# =========================

def validate_amount(amount: int) -> None:
    if amount < 1 or amount > MAX_AMOUNT:
        raise InvalidArgumentError(
            f"amount must be between 1 and {MAX_AMOUNT}, got {amount}"
        )


def build_question_params(
    amount: int,
    category: Optional[Category] = None,
    difficulty: Optional[QuestionDifficulty] = None,
    question_type: Optional[QuestionType] = None,
    encoding: Optional[EncodingMode] = None,
    token: Optional[SessionToken] = None,
) -> Dict[str, Any]:
    """
    Query parameters for the questions endpoint, in upstream order:
    amount, category, difficulty, type, encode, token.
    Absent values are left out; DEFAULT encoding sends no `encode`.
    """
    params: Dict[str, Any] = {"amount": amount}

    if category is not None:
        params["category"] = category.id

    if difficulty is not None:
        params["difficulty"] = difficulty.value

    if question_type is not None:
        params["type"] = question_type.value

    if encoding is not None and encoding != EncodingMode.DEFAULT:
        params["encode"] = encoding.value

    if token is not None:
        params["token"] = token.value

    return params


# =========================
# Client
# =========================

class OpenTriviaClient:
    """
    Async client for the Open Trivia Database.

    Every operation returns an ApiResponse. Only malformed calls
    (InvalidArgumentError) raise.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        *,
        decoder: Optional[ResponseDecoder] = None,
        manage_rate_limit: bool = False,
        rate_limit_seconds: float = RATE_LIMIT_SECONDS,
        auto_decode: bool = False,
        default_encoding: Optional[EncodingMode] = None,
        question_url: str = BASE_QUESTION_URL,
        token_url: str = TOKEN_URL,
        category_url: str = CATEGORY_URL,
        count_url: str = COUNT_URL,
        timeout: Optional[float] = None,
    ):
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)
        self._decoder = decoder or ResponseDecoder()

        self.manage_rate_limit = manage_rate_limit
        self.rate_limit_seconds = rate_limit_seconds
        self.auto_decode = auto_decode
        self.default_encoding = default_encoding
        self._throttle = RateThrottle(rate_limit_seconds)

        self.question_url = question_url
        self.token_url = token_url
        self.category_url = category_url
        self.count_url = count_url

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "OpenTriviaClient":
        return cls(
            http_client,
            manage_rate_limit=settings.MANAGE_RATE_LIMIT,
            rate_limit_seconds=settings.RATE_LIMIT_SECONDS,
            auto_decode=settings.AUTO_DECODE,
            default_encoding=settings.DEFAULT_ENCODING,
            question_url=settings.QUESTION_URL,
            token_url=settings.TOKEN_URL,
            category_url=settings.CATEGORY_URL,
            count_url=settings.COUNT_URL,
            timeout=settings.HTTP_TIMEOUT,
        )

    @property
    def decoder(self) -> ResponseDecoder:
        return self._decoder

    @property
    def throttle(self) -> RateThrottle:
        return self._throttle

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> "OpenTriviaClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # --------------------------------------------------
    # Session Tokens
    # --------------------------------------------------

    async def get_session_token(
        self,
        cancel: Optional[asyncio.Event] = None,
    ) -> ApiResponse[SessionToken]:
        return await self._get_api_result(
            self.token_url,
            {"command": "request"},
            self._decoder.decode_session_token,
            cancel,
        )

    async def reset_session_token(
        self,
        token: SessionToken,
        cancel: Optional[asyncio.Event] = None,
    ) -> ApiResponse[SessionToken]:
        return await self._get_api_result(
            self.token_url,
            {"command": "reset", "token": token.value},
            self._decoder.decode_session_token,
            cancel,
        )

    # --------------------------------------------------
    # Categories
    # --------------------------------------------------

    async def get_categories(
        self,
        cancel: Optional[asyncio.Event] = None,
    ) -> ApiResponse[List[Category]]:
        """
        The categories payload carries no response_code, so an empty
        list reports NO_RESULTS and anything else SUCCESS.
        """
        result = await self._get_api_result(
            self.category_url,
            None,
            self._decoder.decode_categories,
            cancel,
        )

        if result.data is not None:
            result.response_code = ResponseCode.SUCCESS if result.data else ResponseCode.NO_RESULTS

        return result

    async def get_question_count(
        self,
        category: Category,
        cancel: Optional[asyncio.Event] = None,
    ) -> ApiResponse[QuestionCount]:
        result = await self._get_api_result(
            self.count_url,
            {"category": category.id},
            self._decoder.decode_question_count,
            cancel,
        )

        if result.data is not None:
            result.response_code = ResponseCode.SUCCESS

        return result

    # --------------------------------------------------
    # Questions (single category)
    # --------------------------------------------------

    async def get_questions(
        self,
        amount: int,
        category: Optional[Category] = None,
        difficulty: Optional[QuestionDifficulty] = None,
        question_type: Optional[QuestionType] = None,
        encoding: Optional[EncodingMode] = None,
        token: Optional[SessionToken] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> ApiResponse[List[Question]]:
        """
        Fetch up to `amount` questions (1-50) in one upstream request.

        Raises:
            InvalidArgumentError: amount out of range (before any I/O)
        """
        validate_amount(amount)

        if encoding is None:
            encoding = self.default_encoding

        params = build_question_params(amount, category, difficulty, question_type, encoding, token)

        decoding: Optional[EncodingMode] = None
        if self.auto_decode:
            decoding = encoding or EncodingMode.DEFAULT

        if self.manage_rate_limit:
            try:
                await self._throttle.acquire_and_wait(cancel)
            except ThrottleCancelledError as e:
                return ApiResponse(
                    error=e,
                    response_code=ResponseCode.UNKNOWN,
                    status_code=CLIENT_CLOSED_REQUEST,
                )

        return await self._get_api_result(
            self.question_url,
            params,
            lambda document: self._decoder.decode_questions(document, decoding),
            cancel,
        )

    # --------------------------------------------------
    # Transport
    # --------------------------------------------------

    async def _get_api_result(
        self,
        url: str,
        params: Optional[Dict[str, Any]],
        builder: Callable[[Any], T],
        cancel: Optional[asyncio.Event],
    ) -> ApiResponse[T]:
        request_url = httpx.URL(url, params=params)

        try:
            document = await self._get_json_document(request_url, cancel)
            data = builder(document)

        except RequestCancelledError as e:
            return ApiResponse(
                error=e,
                response_code=ResponseCode.UNKNOWN,
                status_code=500,
            )

        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to get API result from URI: {request_url}: {type(e).__name__}: {e}")

            status_code = 500
            if isinstance(e, httpx.HTTPStatusError):
                status_code = e.response.status_code

            return ApiResponse(
                error=ApiError(f"Failed to get API result from URI: {request_url}", e),
                response_code=ResponseCode.UNKNOWN,
                status_code=status_code,
            )

        return ApiResponse(
            data=data,
            response_code=self._decoder.get_response_code(document),
            status_code=200,
        )

    async def _get_json_document(
        self,
        url: httpx.URL,
        cancel: Optional[asyncio.Event],
    ) -> Any:
        logger.debug(f"Requesting JSON document from: {url}")

        try:
            response = await cancellation.run_until_cancelled(self._http_client.get(url), cancel)
            response.raise_for_status()
            document = response.json()

        except OperationCancelled as e:
            logger.warning(f"Request to {url} was canceled")
            raise RequestCancelledError(f"Request to {url} was canceled") from e

        except httpx.HTTPError as e:
            logger.error(f"HTTP request failed for URI: {url}: {type(e).__name__}")
            raise

        except ValueError:
            logger.error(f"Failed to parse JSON response from URI: {url}")
            raise

        logger.debug(f"Successfully parsed JSON document from: {url}")
        return document
