"""Response envelope shared by every endpoint."""

from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Successful response: ``{"success": true, "data": ...}``."""

    success: Literal[True] = True
    data: T


class ErrorBody(BaseModel):
    """Error payload carried by failed responses."""

    code: str
    message: str
    details: list[dict[str, Any]] | None = None


class ErrorResponse(BaseModel):
    """Failed response: ``{"success": false, "error": {...}}``."""

    success: Literal[False] = False
    error: ErrorBody
