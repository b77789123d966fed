from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

from errors import ApiError, RequestCancelledError, ThrottleCancelledError
from models import ResponseCode

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """
    Result of one pipeline operation.

    - data: decoded payload, or None when nothing could be decoded
    - error: ApiError describing the failure, None on transport success
    - response_code: upstream semantic code (UNKNOWN when not reported)
    - status_code: HTTP status, or 499 / 400 / 500 for local outcomes
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: Optional[T] = None
    error: Optional[ApiError] = None
    response_code: ResponseCode = ResponseCode.UNKNOWN
    status_code: int = 0

    @property
    def is_success(self) -> bool:
        return self.error is None and self.response_code == ResponseCode.SUCCESS

    @property
    def error_message(self) -> Optional[str]:
        return self.error.message if self.error is not None else None

    @property
    def is_cancelled(self) -> bool:
        return isinstance(self.error, (RequestCancelledError, ThrottleCancelledError))
