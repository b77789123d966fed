import asyncio
import logging
from typing import Iterable, List, Optional

import cancellation
from client import CLIENT_CLOSED_REQUEST, OpenTriviaClient, validate_amount
from config import RATE_LIMIT_SECONDS
from errors import (
    ApiError,
    InvalidArgumentError,
    OperationCancelled,
    ThrottleCancelledError,
)
from models import (
    Category,
    EncodingMode,
    Question,
    QuestionDifficulty,
    QuestionType,
    ResponseCode,
    SessionToken,
)
from response import ApiResponse

logger = logging.getLogger("opentrivia.aggregator")


async def get_questions_for_categories(
    client: OpenTriviaClient,
    amount: int,
    categories: Iterable[Category],
    difficulty: Optional[QuestionDifficulty] = None,
    question_type: Optional[QuestionType] = None,
    encoding: Optional[EncodingMode] = None,
    token: Optional[SessionToken] = None,
    cancel: Optional[asyncio.Event] = None,
) -> ApiResponse[List[Question]]:
    """
    Fetch `amount` questions for EACH category and merge them.

    Requests run one after another with the upstream's fixed interval
    (RATE_LIMIT_SECONDS) between them, so n categories take at least
    interval * (n - 1) seconds. The delay applies whether or not the client
    manages the rate limit, and ignores the client's own throttle setting.

    The result's data holds questions from every category, while its
    error / response_code / status_code come from the last request only.
    An early failure is hidden by a later success, and a late failure
    is reported even though earlier questions are present.

    Cancelling during a request stops the loop and returns that request's
    cancellation envelope with the questions gathered so far.

    Raises:
        InvalidArgumentError: categories is None or amount out of range
    """
    if categories is None:
        raise InvalidArgumentError("categories must not be None")
    validate_amount(amount)

    categories = list(categories)
    if not categories:
        return ApiResponse(
            data=[],
            error=ApiError("No categories provided"),
            response_code=ResponseCode.INVALID_PARAMETER,
            status_code=400,
        )

    all_questions: List[Question] = []
    last: Optional[ApiResponse[List[Question]]] = None

    for index, category in enumerate(categories):
        if index > 0:
            try:
                await cancellation.sleep(RATE_LIMIT_SECONDS, cancel)
            except OperationCancelled as e:
                logger.warning(
                    f"Delay before category {category.id} was canceled after {index} of {len(categories)} requests"
                )
                return ApiResponse(
                    data=all_questions,
                    error=ThrottleCancelledError("Rate limit delay between categories was canceled", e),
                    response_code=ResponseCode.UNKNOWN,
                    status_code=CLIENT_CLOSED_REQUEST,
                )

        last = await client.get_questions(
            amount,
            category,
            difficulty,
            question_type,
            encoding,
            token,
            cancel,
        )

        if last.data is not None:
            all_questions.extend(last.data)
        else:
            logger.debug(f"Category {category.id} contributed no questions: {last.error_message}")

        if last.is_cancelled:
            logger.warning(
                f"Request for category {category.id} was canceled after {index} of {len(categories)} requests"
            )
            break

    return ApiResponse(
        data=all_questions,
        error=last.error,
        response_code=last.response_code,
        status_code=last.status_code,
    )
