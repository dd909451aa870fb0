"""
Phone-number sign-in workflow.

Phases run AWAITING_PHONE -> AWAITING_CODE -> AWAITING_PROFILE -> AUTHENTICATED.
Returning users skip AWAITING_PROFILE. Only one submission runs at a time;
logout() may be called at any point and discards the result of whatever
call is still in flight.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

from ..api.auth_client import AuthApiClient
from ..models.auth import (
    CompleteRegistrationResponse,
    RequestVerificationResponse,
    UserProfile,
    UserType,
    VerifyCodeResponse,
)
from ..models.ui_state import CodeSent, Failed, Initial, Loading, Registered, ScreenState, Verified
from ..utils.exceptions import (
    EmptyName,
    InvalidCodeFormat,
    MaiDriveError,
    MissingContext,
    OperationInProgress,
    ServerRejected,
    SessionCancelled,
)
from ..utils.logger import get_logger, mask_phone
from .session import SessionState, VerificationContext
from .token_store import PendingRegistration, TokenStore
from .validation import clean_optional, is_valid_code, is_valid_email, parse_phone

logger = get_logger(__name__)

UNEXPECTED_ERROR_MESSAGE = "Something went wrong. Please try again."


class AuthPhase(str, Enum):
    AWAITING_PHONE = "awaiting_phone"
    AWAITING_CODE = "awaiting_code"
    AWAITING_PROFILE = "awaiting_profile"
    AUTHENTICATED = "authenticated"


def _parse_user_type(value: Optional[str], fallback: Optional[UserType]) -> Optional[UserType]:
    if value is None:
        return fallback
    try:
        return UserType(value)
    except ValueError:
        logger.warning("Unknown user type in response", user_type=value)
        return fallback


class AuthWorkflow:
    """Sequences the three auth calls and is the only writer of session and token."""

    def __init__(
        self,
        api: AuthApiClient,
        token_store: TokenStore,
        session: SessionState,
    ):
        self.api = api
        self.token_store = token_store
        self.session = session
        self._context = VerificationContext()
        self._phase = AuthPhase.AWAITING_PHONE
        self._state: ScreenState = Initial()
        # Held for the whole duration of a submission
        self._operation_lock = threading.Lock()
        # Short critical sections: applying results and logout
        self._guard = threading.Lock()
        self._generation = 0

    @property
    def phase(self) -> AuthPhase:
        return self._phase

    @property
    def state(self) -> ScreenState:
        return self._state

    @property
    def context(self) -> VerificationContext:
        """Copy of the verification context."""
        return VerificationContext(
            phone_number=self._context.phone_number,
            user_id=self._context.user_id,
        )

    @property
    def is_busy(self) -> bool:
        return self._operation_lock.locked()

    def restore(self) -> AuthPhase:
        """
        Resume a previous session if the token store still holds a valid token.

        A token issued before the profile was sent resumes at AWAITING_PROFILE.
        If the stored record cannot tell which user to register, the token is
        dropped and sign-in starts over.
        """
        with self._guard:
            if not self.token_store.has_valid():
                return self._phase

            pending = self.token_store.pending_registration()
            if pending is None:
                self.session.set_needs_registration(False)
                self._phase = AuthPhase.AUTHENTICATED
                logger.info("Restored session from stored token")
            elif pending.can_resume:
                self._context.phone_number = pending.phone_number
                self._context.user_id = pending.user_id
                self.session.set_user_type(_parse_user_type(pending.user_type, UserType.PASSENGER))
                self.session.set_needs_registration(True)
                self._phase = AuthPhase.AWAITING_PROFILE
                logger.info(
                    "Restored unfinished registration",
                    user_id=pending.user_id,
                    phone=mask_phone(pending.phone_number),
                )
            else:
                logger.warning("Stored token belongs to an unfinished registration that cannot be resumed")
                self.token_store.clear()
                self.session.clear()
                self._phase = AuthPhase.AWAITING_PHONE
        return self._phase

    @contextmanager
    def _operation(self, name: str) -> Iterator[int]:
        """Run one submission; a second one while this is active is rejected."""
        if not self._operation_lock.acquire(blocking=False):
            logger.warning("Rejected overlapping auth operation", operation=name)
            raise OperationInProgress()
        try:
            with self._guard:
                generation = self._generation
                self._state = Loading()
            try:
                yield generation
            except SessionCancelled:
                raise
            except MaiDriveError as e:
                with self._guard:
                    if generation != self._generation:
                        logger.info("Discarding failure after logout", operation=name)
                        raise SessionCancelled() from e
                    self._state = Failed(str(e))
                logger.info("Auth operation failed", operation=name, error=str(e), phase=self._phase.value)
                raise
            except Exception:
                # Unexpected fault: leave Loading, keep the phase, let the caller see the error
                with self._guard:
                    if generation == self._generation:
                        self._state = Failed(UNEXPECTED_ERROR_MESSAGE)
                logger.exception("Unexpected error in auth operation", operation=name, phase=self._phase.value)
                raise
        finally:
            self._operation_lock.release()

    def _check_generation(self, generation: int, name: str) -> None:
        # Caller holds self._guard
        if generation != self._generation:
            logger.info("Discarding result after logout", operation=name)
            raise SessionCancelled()

    def submit_phone(
        self,
        raw_phone: str,
        user_type: UserType = UserType.PASSENGER,
    ) -> RequestVerificationResponse:
        """
        Validate the phone number and request an SMS code.

        Raises:
            InvalidPhoneFormat: Input is not a valid national number
            ServerRejected, TransportFailure: The request failed; phase is unchanged
        """
        user_type = UserType(user_type)
        with self._operation("submit_phone") as generation:
            phone_number = parse_phone(raw_phone)
            response = self.api.request_verification_code(phone_number, user_type)

            with self._guard:
                self._check_generation(generation, "submit_phone")
                self._context.phone_number = phone_number
                self._context.user_id = None
                self.session.set_user_type(user_type)
                self._phase = AuthPhase.AWAITING_CODE
                self._state = CodeSent(
                    verification_code=response.verification_code or response.code,
                    notification_text=response.notification_text,
                )
            logger.info("Verification code requested", phone=mask_phone(phone_number), user_type=user_type.value)
            return response

    def submit_code(self, code: str) -> VerifyCodeResponse:
        """
        Verify the SMS code and store the returned token.

        Moves to AWAITING_PROFILE when the server asks for registration,
        otherwise straight to AUTHENTICATED.
        """
        with self._operation("submit_code") as generation:
            code = code or ""
            if not is_valid_code(code):
                raise InvalidCodeFormat()
            phone_number = self._context.phone_number
            if not phone_number:
                raise MissingContext("Phone number not found. Please start again.")

            response = self.api.verify_code(phone_number, code)
            if not response.token:
                raise ServerRejected("Server did not return an access token")

            requires_registration = response.requires_registration
            user_type = _parse_user_type(response.user_type, self.session.user_type)
            user_id = response.user_id or None

            with self._guard:
                self._check_generation(generation, "submit_code")
                # Token first: if persisting it fails nothing else has changed
                pending = None
                if requires_registration:
                    pending = PendingRegistration(
                        user_id=user_id,
                        phone_number=phone_number,
                        user_type=user_type.value if user_type else None,
                    )
                self.token_store.save(response.token, pending_registration=pending)
                self.session.set_user(response.user)
                self.session.set_user_type(user_type)
                self._context.user_id = user_id

                self.session.set_needs_registration(requires_registration)
                if requires_registration:
                    self._phase = AuthPhase.AWAITING_PROFILE
                else:
                    self._phase = AuthPhase.AUTHENTICATED
                self._state = Verified(requires_registration=requires_registration)

            logger.info(
                "Code verified",
                phone=mask_phone(phone_number),
                is_new_user=response.is_new_user,
                requires_registration=requires_registration,
            )
            return response

    def submit_profile(
        self,
        first_name: str,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> CompleteRegistrationResponse:
        """
        Send the profile of a newly verified user.

        An email that does not look like an address is dropped, not rejected.
        """
        with self._operation("submit_profile") as generation:
            first_name = (first_name or "").strip()
            if not first_name:
                raise EmptyName()
            user_id = self._context.user_id
            phone_number = self._context.phone_number
            if not user_id or not phone_number:
                raise MissingContext("User information not found. Please sign in again.")

            last_name = clean_optional(last_name)
            email = clean_optional(email)
            if email and not is_valid_email(email):
                logger.info("Omitting invalid email from registration", user_id=user_id)
                email = None

            response = self.api.complete_registration(
                user_id=user_id,
                phone_number=phone_number,
                first_name=first_name,
                last_name=last_name,
                email=email,
            )

            with self._guard:
                self._check_generation(generation, "submit_profile")
                self.token_store.mark_registered()
                self.session.set_user(
                    UserProfile(
                        id=response.user_id or user_id,
                        phone_number=phone_number,
                        first_name=first_name,
                        last_name=last_name,
                        email=email,
                        is_phone_verified=True,
                    )
                )
                self.session.set_needs_registration(False)
                self._context.clear()
                self._phase = AuthPhase.AUTHENTICATED
                self._state = Registered()

            logger.info("Registration completed", user_id=user_id, passenger_id=response.passenger_id)
            return response

    def logout(self) -> None:
        """Clear token, session and context from any phase; safe to repeat."""
        with self._guard:
            self._generation += 1
            try:
                self.token_store.clear()
            finally:
                # In-memory state is reset even if the stored token could not be removed
                self.session.clear()
                self._context.clear()
                self._phase = AuthPhase.AWAITING_PHONE
                self._state = Initial()
        logger.info("Logged out")
