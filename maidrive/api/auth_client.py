"""MAi Drive auth API client"""

from typing import Dict, Optional, Type, TypeVar

import requests
from pydantic import ValidationError

from ..auth.token_store import TokenStore
from ..models.auth import (
    CompleteRegistrationRequest,
    CompleteRegistrationResponse,
    ErrorResponse,
    RequestVerificationRequest,
    RequestVerificationResponse,
    UserType,
    VerifyCodeRequest,
    VerifyCodeResponse,
    WireModel,
)
from ..utils.exceptions import ServerRejected, TransportFailure
from ..utils.logger import get_logger, mask_phone

logger = get_logger(__name__)

ResponseT = TypeVar("ResponseT", bound=WireModel)

REQUEST_CODE_ENDPOINT = "auth/custom/request-code"
VERIFY_CODE_ENDPOINT = "auth/custom/verify-code"
COMPLETE_REGISTRATION_ENDPOINT = "auth/custom/complete-registration"


def build_api_url(base_url: str) -> str:
    """Return '<scheme>://host[:port]/api/' for a configured base URL."""
    base = base_url.strip()
    if not base.startswith("http://") and not base.startswith("https://"):
        base = f"http://{base}"
    return f"{base.rstrip('/')}/api/"


class AuthApiClient:
    """Client for the phone-auth endpoints of the MAi Drive backend"""

    def __init__(
        self,
        base_url: str,
        token_store: Optional[TokenStore] = None,
        connection_timeout: float = 10.0,
        read_timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = build_api_url(base_url)
        self.token_store = token_store
        # Use tuple timeout: (connect_timeout, read_timeout)
        self.timeout = (connection_timeout, read_timeout)
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        token = self.token_store.get() if self.token_store else None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _post(
        self,
        endpoint: str,
        body: WireModel,
        response_model: Type[ResponseT],
    ) -> ResponseT:
        """
        POST a JSON body and parse the success envelope

        Args:
            endpoint: API endpoint relative to /api/
            body: Request model
            response_model: Model for a 2xx body

        Returns:
            Parsed response model

        Raises:
            ServerRejected: Non-2xx status, or a 2xx envelope with success=false
            TransportFailure: Connection fault or malformed body
        """
        url = f"{self.base_url}{endpoint}"
        headers = self._headers()

        logger.info(
            "Making auth API request",
            endpoint=endpoint,
            has_token="Authorization" in headers,
        )
        try:
            response = self.session.post(
                url,
                json=body.to_payload(),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning("Auth API request timed out", endpoint=endpoint, error=str(e))
            raise TransportFailure("The server did not respond in time. Please try again.")
        except requests.exceptions.RequestException as e:
            logger.warning("Auth API request failed", endpoint=endpoint, error=str(e))
            raise TransportFailure()

        logger.info(
            "Received auth API response",
            endpoint=endpoint,
            status_code=response.status_code,
        )

        if not 200 <= response.status_code < 300:
            raise ServerRejected(
                self._error_message(response),
                status_code=response.status_code,
            )

        try:
            result = response_model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            # requests raises a ValueError subclass for non-JSON bodies
            logger.warning("Malformed auth API response", endpoint=endpoint, error=str(e))
            raise TransportFailure("The server sent an unexpected response. Please try again.")

        if not getattr(result, "success", True):
            raise ServerRejected(result.message or "Request was rejected", status_code=response.status_code)
        return result

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        fallback = f"Request failed with status {response.status_code}"
        try:
            error = ErrorResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            return fallback
        return error.message or fallback

    def request_verification_code(
        self,
        phone_number: str,
        user_type: UserType = UserType.PASSENGER,
    ) -> RequestVerificationResponse:
        """Ask the backend to send an SMS code to the phone number"""
        logger.debug("Requesting verification code", phone=mask_phone(phone_number), user_type=UserType(user_type).value)
        body = RequestVerificationRequest(phone_number=phone_number, user_type=user_type)
        return self._post(REQUEST_CODE_ENDPOINT, body, RequestVerificationResponse)

    def verify_code(self, phone_number: str, code: str) -> VerifyCodeResponse:
        """Exchange phone number + SMS code for a bearer token"""
        logger.debug("Verifying code", phone=mask_phone(phone_number))
        body = VerifyCodeRequest(phone_number=phone_number, code=code)
        return self._post(VERIFY_CODE_ENDPOINT, body, VerifyCodeResponse)

    def complete_registration(
        self,
        user_id: str,
        phone_number: str,
        first_name: str,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> CompleteRegistrationResponse:
        """Submit the profile of a newly verified user"""
        logger.debug("Completing registration", user_id=user_id, phone=mask_phone(phone_number))
        body = CompleteRegistrationRequest(
            user_id=user_id,
            phone_number=phone_number,
            first_name=first_name,
            last_name=last_name,
            email=email,
        )
        return self._post(COMPLETE_REGISTRATION_ENDPOINT, body, CompleteRegistrationResponse)

    def close(self) -> None:
        self.session.close()
