"""Tests for the error taxonomy and message extraction."""

import pytest

from ctfbot.utils.exceptions import (
    CONNECTIVITY_MESSAGE, GENERIC_MESSAGE, ApiError, AuthError, NetworkError,
    ServerError, ValidationError, extract_error_message
)


class TestExtractErrorMessage:
    @pytest.mark.parametrize("payload,expected", [
        ({'detail': 'd', 'error': 'e'}, 'd'),
        ({'error': 'Group has active contest'}, 'Group has active contest'),
        ({'message': 'm', 'msg': 'x'}, 'm'),
        ({'msg': 'x'}, 'x'),
        ({'non_field_errors': ['first', 'second']}, 'first'),
        ({'detail': '', 'error': 'fallthrough'}, 'fallthrough'),
        ({'detail': []}, 'Invalid input. Please check and try again.'),
    ])
    def test_payload_keys_in_order(self, payload, expected):
        assert extract_error_message(payload, 400) == expected

    @pytest.mark.parametrize("status,expected", [
        (400, "Invalid input. Please check and try again."),
        (401, "Session expired. Please log in again."),
        (403, "Forbidden. You don't have permission to do that."),
        (404, "Not found."),
        (500, "Server error. Please try again."),
        (503, "Server error. Please try again."),
        (None, CONNECTIVITY_MESSAGE),
    ])
    def test_status_fallbacks(self, status, expected):
        assert extract_error_message(None, status) == expected

    def test_unknown_status_uses_caller_fallback(self):
        assert extract_error_message({}, 418) == GENERIC_MESSAGE
        assert extract_error_message({}, 418, "Failed to delete contest.") == "Failed to delete contest."

    def test_non_dict_payload_is_ignored(self):
        assert extract_error_message(['detail'], 404) == "Not found."


class TestTaxonomy:
    def test_api_errors_share_a_base(self):
        for error in (NetworkError("GET /x/"), ServerError("GET /x/", 500), AuthError("GET /x/", 401)):
            assert isinstance(error, ApiError)

    def test_server_error_carries_status_and_payload(self):
        error = ServerError("DELETE /users/groups/7/", 400, {'error': 'Group has active contest'})
        assert error.status == 400
        assert error.payload == {'error': 'Group has active contest'}
        assert error.user_message == 'Group has active contest'

    def test_network_error_has_no_status(self):
        error = NetworkError("GET /x/", "timeout")
        assert error.status is None
        assert error.user_message == CONNECTIVITY_MESSAGE

    def test_validation_error_is_not_an_api_error(self):
        error = ValidationError("name", "Name is required.")
        assert not isinstance(error, ApiError)
        assert error.field == "name"
        assert error.user_message == "Name is required."
