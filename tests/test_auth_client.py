"""Unit tests for the auth API client"""

from unittest.mock import MagicMock, Mock

import pytest
import requests

from maidrive.api.auth_client import AuthApiClient, build_api_url
from maidrive.auth.token_store import MemoryTokenStore
from maidrive.models.auth import UserType
from maidrive.utils.exceptions import ServerRejected, TransportFailure


def make_response(status_code=200, body=None, json_error=None):
    response = Mock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body if body is not None else {}
    return response


@pytest.fixture
def token_store():
    return MemoryTokenStore()


@pytest.fixture
def http():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(http, token_store):
    return AuthApiClient("http://api.test:5399", token_store=token_store, session=http)


def sent_kwargs(http):
    args, kwargs = http.post.call_args
    return args[0], kwargs


def test_build_api_url():
    assert build_api_url("http://10.0.2.2:5399") == "http://10.0.2.2:5399/api/"
    assert build_api_url("localhost:5399") == "http://localhost:5399/api/"
    assert build_api_url("https://drive.example.com/") == "https://drive.example.com/api/"


class TestRequestVerificationCode:

    def test_success(self, client, http):
        http.post.return_value = make_response(200, {
            "message": "Code sent",
            "code": "123456",
            "verification_code": "123456",
            "notification_text": "Your code is 123456",
            "success": True,
            "phoneNumber": "+93700123456",
            "userType": "passenger",
            "extraField": "ignored",
        })

        result = client.request_verification_code("+93700123456", UserType.PASSENGER)

        assert result.verification_code == "123456"
        assert result.notification_text == "Your code is 123456"
        url, kwargs = sent_kwargs(http)
        assert url == "http://api.test:5399/api/auth/custom/request-code"
        assert kwargs["json"] == {"phoneNumber": "+93700123456", "userType": "passenger"}
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["timeout"] == (10.0, 30.0)

    def test_driver_user_type_is_sent(self, client, http):
        http.post.return_value = make_response(200, {"success": True})
        client.request_verification_code("+93700123456", UserType.DRIVER)
        _, kwargs = sent_kwargs(http)
        assert kwargs["json"]["userType"] == "driver"

    def test_error_envelope_message_is_surfaced(self, client, http):
        http.post.return_value = make_response(400, {"message": "Too many requests", "success": False})

        with pytest.raises(ServerRejected) as exc_info:
            client.request_verification_code("+93700123456")

        assert str(exc_info.value) == "Too many requests"
        assert exc_info.value.status_code == 400

    def test_unparseable_error_body_gets_generic_message(self, client, http):
        http.post.return_value = make_response(502, json_error=ValueError("not json"))

        with pytest.raises(ServerRejected) as exc_info:
            client.request_verification_code("+93700123456")

        assert "502" in str(exc_info.value)

    def test_success_false_in_2xx_envelope_is_rejected(self, client, http):
        http.post.return_value = make_response(200, {"success": False, "message": "Blocked number"})

        with pytest.raises(ServerRejected, match="Blocked number"):
            client.request_verification_code("+93700123456")


class TestVerifyCode:

    def test_missing_optional_fields_take_defaults(self, client, http):
        http.post.return_value = make_response(200, {
            "success": True,
            "message": "ok",
            "token": "jwt-abc",
            "userId": "u-1",
        })

        result = client.verify_code("+93700123456", "123456")

        assert result.token == "jwt-abc"
        assert result.user_id == "u-1"
        assert result.requires_registration is False
        assert result.is_new_user is False
        assert result.user is None
        assert result.user_type == "passenger"
        _, kwargs = sent_kwargs(http)
        assert kwargs["json"] == {"phoneNumber": "+93700123456", "code": "123456"}

    def test_user_payload_is_parsed(self, client, http):
        http.post.return_value = make_response(200, {
            "success": True,
            "message": "ok",
            "token": "jwt-abc",
            "userId": "u-1",
            "isNewUser": False,
            "user": {
                "id": "u-1",
                "phoneNumber": "+93700123456",
                "firstName": "Ali",
                "isPhoneVerified": True,
            },
            "userType": "driver",
            "requiresRegistration": False,
        })

        result = client.verify_code("+93700123456", "123456")

        assert result.user.first_name == "Ali"
        assert result.user.last_name is None
        assert result.user.is_phone_verified is True
        assert result.user_type == "driver"

    def test_invalid_code_rejected_by_server(self, client, http):
        http.post.return_value = make_response(401, {"message": "invalid code", "success": False})

        with pytest.raises(ServerRejected, match="invalid code"):
            client.verify_code("+93700123456", "000000")


class TestCompleteRegistration:

    def test_body_contains_full_name_and_parts(self, client, http):
        http.post.return_value = make_response(200, {
            "message": "Registered",
            "passengerId": "p-9",
            "userId": "u-1",
            "success": True,
        })

        result = client.complete_registration("u-1", "+93700123456", "Ali", "Ahmadi", "ali@example.com")

        assert result.passenger_id == "p-9"
        url, kwargs = sent_kwargs(http)
        assert url.endswith("/api/auth/custom/complete-registration")
        assert kwargs["json"] == {
            "userId": "u-1",
            "phoneNumber": "+93700123456",
            "firstName": "Ali",
            "lastName": "Ahmadi",
            "email": "ali@example.com",
            "fullName": "Ali Ahmadi",
        }

    def test_optional_fields_are_omitted(self, client, http):
        http.post.return_value = make_response(200, {"success": True})

        client.complete_registration("u-1", "+93700123456", "Ali")

        _, kwargs = sent_kwargs(http)
        assert kwargs["json"] == {
            "userId": "u-1",
            "phoneNumber": "+93700123456",
            "firstName": "Ali",
            "fullName": "Ali",
        }


class TestHeadersAndFaults:

    def test_no_authorization_header_without_token(self, client, http):
        http.post.return_value = make_response(200, {"success": True})
        client.request_verification_code("+93700123456")
        _, kwargs = sent_kwargs(http)
        assert "Authorization" not in kwargs["headers"]

    def test_bearer_header_with_token(self, client, http, token_store):
        token_store.save("jwt-xyz")
        http.post.return_value = make_response(200, {"success": True})
        client.request_verification_code("+93700123456")
        _, kwargs = sent_kwargs(http)
        assert kwargs["headers"]["Authorization"] == "Bearer jwt-xyz"

    def test_client_without_token_store(self, http):
        client = AuthApiClient("localhost:5399", session=http)
        http.post.return_value = make_response(200, {"success": True})
        client.request_verification_code("+93700123456")
        _, kwargs = sent_kwargs(http)
        assert "Authorization" not in kwargs["headers"]

    def test_connection_error_becomes_transport_failure(self, client, http):
        http.post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(TransportFailure):
            client.verify_code("+93700123456", "123456")

    def test_timeout_becomes_transport_failure(self, client, http):
        http.post.side_effect = requests.exceptions.ReadTimeout("slow")

        with pytest.raises(TransportFailure, match="did not respond"):
            client.verify_code("+93700123456", "123456")

    def test_malformed_success_body_becomes_transport_failure(self, client, http):
        http.post.return_value = make_response(200, json_error=ValueError("bad json"))

        with pytest.raises(TransportFailure):
            client.verify_code("+93700123456", "123456")

    def test_wrong_types_in_success_body_become_transport_failure(self, client, http):
        http.post.return_value = make_response(200, {"success": True, "requiresRegistration": {"x": 1}})

        with pytest.raises(TransportFailure):
            client.verify_code("+93700123456", "123456")
