"""Tests for Result/Message error responses."""

import orjson

from cachecast.api.errors import (
    BadRequestError,
    InternalServerError,
    InvalidationNotPublishedError,
    Message,
    MessageType,
    Result,
    SourceUnavailableError,
)


class TestMessageType:
    """Test MessageType enum."""

    def test_message_types(self) -> None:
        """All required message types exist."""
        assert MessageType.ERROR.value == "Error"
        assert MessageType.WARNING.value == "Warning"
        assert MessageType.INFO.value == "Info"
        assert MessageType.EXCEPTION.value == "Exception"


class TestMessage:
    """Test Message model."""

    def test_basic_message(self) -> None:
        """Message with required fields."""
        msg = Message(code="BadRequest", message_type=MessageType.ERROR, text="Invalid key")
        assert msg.code == "BadRequest"
        assert msg.message_type == MessageType.ERROR
        assert msg.timestamp is None

    def test_serializes_with_alias(self) -> None:
        """Message fields serialize in camelCase."""
        msg = Message(code="E1", message_type=MessageType.WARNING, text="Careful")
        assert msg.model_dump(by_alias=True)["messageType"] == "Warning"


class TestResult:
    def test_result_with_messages(self) -> None:
        """A result carries every message given."""
        result = Result(
            messages=[
                Message(code="E1", message_type=MessageType.ERROR, text="First"),
                Message(code="E2", message_type=MessageType.WARNING, text="Second"),
            ]
        )
        assert len(result.messages) == 2


class TestBadRequestError:
    def test_bad_request_error(self) -> None:
        """BadRequestError has correct status."""
        error = BadRequestError("Invalid key: empty key")
        assert error.status_code == 400
        assert error.code == "BadRequest"
        assert error.text == "Invalid key: empty key"


class TestSourceUnavailableError:
    def test_source_unavailable(self) -> None:
        """Source failures map to 502 naming the key."""
        error = SourceUnavailableError("abc")
        assert error.status_code == 502
        assert error.code == "SourceUnavailable"
        assert "'abc'" in error.text


class TestInvalidationNotPublishedError:
    """The update went through, only the broadcast failed."""

    def test_is_a_warning(self) -> None:
        """An unpublished invalidation is a 503 warning."""
        error = InvalidationNotPublishedError("abc")
        assert error.status_code == 503
        assert error.message_type == MessageType.WARNING
        assert "stale" in error.text

    def test_to_response(self) -> None:
        """The response body carries a timestamped message."""
        response = InvalidationNotPublishedError("abc").to_response()
        body = orjson.loads(response.body)

        assert response.status_code == 503
        assert body["messages"][0]["code"] == "InvalidationNotPublished"
        assert body["messages"][0]["timestamp"] is not None


class TestInternalServerError:
    def test_internal_server_error(self) -> None:
        """InternalServerError has correct status and type."""
        error = InternalServerError("Data service is not initialized")
        assert error.status_code == 500
        assert error.code == "InternalServerError"
        assert error.message_type == MessageType.EXCEPTION

    def test_internal_server_error_default_message(self) -> None:
        """The default text mentions an unexpected error."""
        error = InternalServerError()
        assert "unexpected error" in error.text
