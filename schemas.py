from pydantic import BaseModel
from typing import Any, List, Optional

from models import Category


class StatusData(BaseModel):
    categories: Optional[List[Category]]
    message: str


class StatusResponse(BaseModel):
    success: bool
    data: StatusData


class DataResponse(BaseModel):
    success: bool = True
    data: Any


class ErrorResponse(BaseModel):
    success: bool = False
    error: Optional[str] = None
    message: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
