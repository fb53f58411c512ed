"""
Unit tests for the Result envelope and error normalisation.
"""

from postgrest.exceptions import APIError

from homebase.models.result import (
    UNKNOWN_ERROR_MESSAGE,
    ApiError,
    ErrorCode,
    Result,
    ResultError,
    record_not_found,
    to_api_error,
)


class TestResult:
    """Test suite for the ``{data, error}`` envelope."""

    def test_success_is_ok(self):
        """A result carrying data and no error is ok."""
        result = Result(data=[1, 2])

        assert result.ok
        assert result.data == [1, 2]

    def test_void_success_is_ok(self):
        """Both fields empty means a void success (delete and friends)."""
        assert Result().ok

    def test_failure_builds_from_any_value(self):
        """``Result.failure`` normalises whatever it is given."""
        result = Result.failure(RuntimeError("disk gone"))

        assert not result.ok
        assert result.data is None
        assert result.error.message == "disk gone"


class TestToApiError:
    """Test suite for :func:`to_api_error`."""

    def test_none_is_unknown(self):
        error = to_api_error(None)

        assert error.message == UNKNOWN_ERROR_MESSAGE
        assert error.code is None

    def test_api_error_passes_through(self):
        original = ApiError(message="nope", code=ErrorCode.NOT_FOUND)

        assert to_api_error(original) is original

    def test_result_error_unwraps(self):
        original = record_not_found("abc")

        assert to_api_error(ResultError(original)) == original

    def test_postgrest_error_keeps_backend_code(self):
        """Structured backend errors keep their message, code and details."""
        exc = APIError({"message": "duplicate key", "code": "23505", "details": "id", "hint": None})

        error = to_api_error(exc, default_code=ErrorCode.UPSTREAM_FAILURE)

        assert error.message == "duplicate key"
        assert error.code == "23505"
        assert error.details == "id"

    def test_postgrest_error_without_code_gets_default(self):
        exc = APIError({"message": "timeout", "code": None, "details": None, "hint": None})

        error = to_api_error(exc, default_code=ErrorCode.UPSTREAM_FAILURE)

        assert error.code == ErrorCode.UPSTREAM_FAILURE

    def test_plain_exception_uses_its_text(self):
        exc = ValueError("Corrupt data stored under 'table:trips'")

        error = to_api_error(exc)

        assert error.message == "Corrupt data stored under 'table:trips'"
        assert error.code is None
        assert error.details is exc

    def test_exception_without_text_is_unknown(self):
        assert to_api_error(RuntimeError()).message == UNKNOWN_ERROR_MESSAGE

    def test_mapping_with_message(self):
        """A raw PostgREST error payload is read as a mapping."""
        error = to_api_error({"message": "permission denied", "code": "42501"})

        assert error.message == "permission denied"
        assert error.code == "42501"

    def test_arbitrary_value_is_unknown_with_details(self):
        error = to_api_error(42)

        assert error.message == UNKNOWN_ERROR_MESSAGE
        assert error.details == 42

    def test_not_found_message_names_the_id(self):
        error = record_not_found("x-1")

        assert error.code == ErrorCode.NOT_FOUND
        assert error.message == "Record with id x-1 not found"
