"""Unit tests for error classification utilities."""

import pytest

from questlist.core.db_client import RecordNotFoundError
from questlist.core.errors import (
    ConflictError,
    ErrorCode,
    ErrorSeverity,
    PersistenceError,
    ValidationError,
    classify_error_with_response,
)


@pytest.mark.unit
class TestErrorHierarchy:
    def test_validation_error_is_value_error(self):
        assert issubclass(ValidationError, ValueError)

    def test_persistence_error_carries_operation(self):
        error = PersistenceError("write failed", operation="update_task")

        assert error.operation == "update_task"
        assert str(error) == "write failed"

    def test_conflict_error_carries_claim_key(self):
        error = ConflictError("total_30")

        assert error.claim_key == "total_30"
        assert "total_30" in str(error)


@pytest.mark.unit
class TestClassifyErrorWithResponse:
    def test_validation(self):
        response = classify_error_with_response(ValidationError("Invalid title: Title cannot be empty"))

        assert response.code == ErrorCode.ERR_VALIDATION
        assert "Title cannot be empty" in response.message
        assert response.severity == ErrorSeverity.LOW

    def test_conflict(self):
        assert classify_error_with_response(ConflictError("x")).code == ErrorCode.ERR_ALREADY_CLAIMED

    def test_key_error_is_not_found(self):
        assert classify_error_with_response(KeyError("123")).code == ErrorCode.ERR_RECORD_NOT_FOUND

    def test_record_not_found_from_store(self):
        error = RecordNotFoundError("Record not found in tasks: 9")

        assert classify_error_with_response(error).code == ErrorCode.ERR_RECORD_NOT_FOUND

    def test_persistence_error_wrapping_missing_record(self):
        error = PersistenceError("Record not found in tasks: 9", operation="update_task")

        assert classify_error_with_response(error).code == ErrorCode.ERR_RECORD_NOT_FOUND

    def test_locked_database_is_network_error(self):
        error = PersistenceError("Failed to update record in tasks: database is locked")

        assert classify_error_with_response(error).code == ErrorCode.ERR_NETWORK_ERROR

    def test_connection_error(self):
        assert classify_error_with_response(ConnectionError("refused")).code == ErrorCode.ERR_NETWORK_ERROR

    def test_generic_persistence_failure(self):
        response = classify_error_with_response(PersistenceError("disk I/O error"))

        assert response.code == ErrorCode.ERR_PERSISTENCE
        assert "undone" in response.message

    def test_unknown(self):
        response = classify_error_with_response(Exception("something odd"))

        assert response.code == ErrorCode.ERR_UNKNOWN
        assert response.suggestion
