"""Unit tests for error classification utilities."""

import pytest

from ecopoints.core.errors import (
    ApiError,
    ClientRequestError,
    EndpointUnavailableError,
    ErrorCategory,
    ErrorCode,
    ErrorSeverity,
    InternalServerError,
    NetworkError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
    classify_api_error,
    classify_status,
    extract_error_message,
)


@pytest.mark.unit
class TestExtractErrorMessage:
    """Tests for extract_error_message function."""

    def test_message_field_wins(self):
        """Test the message field is preferred over error."""
        assert extract_error_message({"message": "Bad email", "error": "ignored"}) == "Bad email"

    def test_error_field_used_when_message_missing(self):
        """Test the error field is the second choice."""
        assert extract_error_message({"error": "Forbidden"}) == "Forbidden"

    def test_blank_message_falls_through(self):
        """Test whitespace-only messages are not shown to the user."""
        assert extract_error_message({"message": "  ", "error": "Forbidden"}) == "Forbidden"

    @pytest.mark.parametrize("body", [None, "plain text", [], {}, {"message": 42}])
    def test_generic_fallback(self, body):
        """Test bodies without a usable message yield the generic text."""
        assert extract_error_message(body) == "An unexpected error occurred"


@pytest.mark.unit
class TestClassifyStatus:
    """Tests for classify_status function."""

    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [
            (401, UnauthorizedError),
            (404, NotFoundError),
            (500, InternalServerError),
            (503, ServiceError),
            (400, ClientRequestError),
            (403, ClientRequestError),
            (422, ClientRequestError),
        ],
    )
    def test_status_maps_to_exception(self, status_code, expected):
        """Test each status range maps to its exception class."""
        error = classify_status(status_code, "boom")

        assert type(error) is expected
        assert error.status_code == status_code
        assert error.message == "boom"

    def test_only_404_and_500_are_endpoint_unavailable(self):
        """Test synthesis-triggering errors are limited to 404 and 500."""
        assert isinstance(classify_status(404), EndpointUnavailableError)
        assert isinstance(classify_status(500), EndpointUnavailableError)
        assert not isinstance(classify_status(403), EndpointUnavailableError)
        assert not isinstance(classify_status(502), EndpointUnavailableError)
        assert not isinstance(classify_status(401), EndpointUnavailableError)

    def test_network_error_has_fixed_message(self):
        """Test NetworkError carries the connectivity message and no status."""
        error = NetworkError()

        assert error.message == "Network error. Please check your connection and try again."
        assert error.status_code is None
        assert error.category == ErrorCategory.NETWORK_ERROR


@pytest.mark.unit
class TestClassifyApiError:
    """Tests for classify_api_error function."""

    def test_network_error(self):
        response = classify_api_error(NetworkError())

        assert response.code == ErrorCode.ERR_NETWORK_ERROR
        assert response.severity == ErrorSeverity.MEDIUM

    def test_unauthorized(self):
        """Test 401 tells the user to sign in again."""
        response = classify_api_error(UnauthorizedError("nope", status_code=401))

        assert response.code == ErrorCode.ERR_AUTHENTICATION_FAILED
        assert "sign in" in response.suggestion.lower()
        assert response.severity == ErrorSeverity.HIGH

    def test_not_found(self):
        response = classify_api_error(NotFoundError("Not Found", status_code=404))

        assert response.code == ErrorCode.ERR_NOT_FOUND
        assert response.message == "Not Found"

    def test_server_errors(self):
        """Test 500 and other 5xx share the server error code."""
        assert classify_api_error(InternalServerError(status_code=500)).code == ErrorCode.ERR_SERVER_ERROR
        assert classify_api_error(ServiceError(status_code=503)).code == ErrorCode.ERR_SERVER_ERROR

    def test_validation_error(self):
        response = classify_api_error(ClientRequestError("Email taken", status_code=409))

        assert response.code == ErrorCode.ERR_VALIDATION_FAILED
        assert response.message == "Email taken"

    def test_unclassified_api_error(self):
        response = classify_api_error(ApiError("odd"))

        assert response.code == ErrorCode.ERR_UNKNOWN
        assert response.message == "odd"

    def test_foreign_exception(self):
        """Test non-API exceptions get a generic response."""
        response = classify_api_error(RuntimeError("internal detail"))

        assert response.code == ErrorCode.ERR_UNKNOWN
        assert "internal detail" not in response.message
