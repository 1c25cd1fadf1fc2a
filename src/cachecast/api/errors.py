"""Error responses for Cachecast.

Every error body uses the same Result/Message structure so clients can
handle failures uniformly across endpoints.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from cachecast.messaging.bus import InvalidationPublishError
from cachecast.service import InvalidKeyError
from cachecast.source import SourceFetchError

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    """Type of message in error response."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    EXCEPTION = "Exception"


class Message(BaseModel):
    """Error message."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    code: str
    message_type: MessageType = Field(alias="messageType")
    text: str
    timestamp: str | None = None


class Result(BaseModel):
    """Result wrapper for errors."""

    model_config = {"extra": "forbid"}

    messages: list[Message]


class ApiError(HTTPException):
    """Base exception for API errors."""

    def __init__(
        self,
        status_code: int,
        code: str,
        text: str,
        message_type: MessageType = MessageType.ERROR,
    ):
        self.code = code
        self.text = text
        self.message_type = message_type
        super().__init__(status_code=status_code, detail=text)

    def to_result(self) -> Result:
        """Convert to Result format."""
        return Result(
            messages=[
                Message(
                    code=self.code,
                    messageType=self.message_type,
                    text=self.text,
                    timestamp=datetime.now(UTC).isoformat(),
                )
            ]
        )

    def to_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content=self.to_result().model_dump(by_alias=True),
        )


class BadRequestError(ApiError):
    """Invalid request (400)."""

    def __init__(self, text: str):
        super().__init__(status_code=400, code="BadRequest", text=text)


class SourceUnavailableError(ApiError):
    """Primary source could not serve a read (502)."""

    def __init__(self, key: str):
        super().__init__(
            status_code=502,
            code="SourceUnavailable",
            text=f"The primary source could not provide data for key '{key}'",
        )


class InvalidationNotPublishedError(ApiError):
    """Update applied but the invalidation broadcast failed (503)."""

    def __init__(self, key: str):
        super().__init__(
            status_code=503,
            code="InvalidationNotPublished",
            text=(
                f"The update for key '{key}' was applied but the cache invalidation "
                "notification could not be sent; other instances may serve stale data"
            ),
            message_type=MessageType.WARNING,
        )


class InternalServerError(ApiError):
    """Internal server error (500)."""

    def __init__(self, text: str = "An unexpected error occurred"):
        super().__init__(
            status_code=500,
            code="InternalServerError",
            text=text,
            message_type=MessageType.EXCEPTION,
        )


async def api_exception_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Exception handler for API errors."""
    return exc.to_response()


async def invalid_key_handler(request: Request, exc: InvalidKeyError) -> JSONResponse:
    return BadRequestError(f"Invalid key: {exc.reason}").to_response()


async def source_fetch_handler(request: Request, exc: SourceFetchError) -> JSONResponse:
    logger.error(f"Primary source fetch failed [key:{exc.key}]: {exc.reason}")
    return SourceUnavailableError(exc.key).to_response()


async def invalidation_publish_handler(
    request: Request, exc: InvalidationPublishError
) -> JSONResponse:
    return InvalidationNotPublishedError(exc.key).to_response()


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for unexpected errors."""
    logger.exception("Unhandled error while serving %s", request.url.path)
    return InternalServerError().to_response()
