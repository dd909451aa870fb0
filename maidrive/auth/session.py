"""
Session state and verification context.

SessionState is owned by the application object and handed to the workflow
and the front-end. Consumers only read it; the auth workflow is the single
writer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models.auth import UserProfile, UserType
from .token_store import TokenStore


class Route(str, Enum):
    """Top-level entry points of the client"""
    AUTH = "auth"
    MAIN = "main"


@dataclass
class VerificationContext:
    """Held between 'code sent' and 'registration completed'."""
    phone_number: Optional[str] = None
    user_id: Optional[str] = None

    def clear(self) -> None:
        self.phone_number = None
        self.user_id = None

    @property
    def is_empty(self) -> bool:
        return self.phone_number is None and self.user_id is None


class SessionState:
    """Login/registration flags derived from workflow outcomes."""

    def __init__(self, token_store: TokenStore):
        self._token_store = token_store
        self._needs_registration = False
        self._user_type: Optional[UserType] = None
        self._user: Optional[UserProfile] = None

    @property
    def is_logged_in(self) -> bool:
        return self._token_store.has_valid()

    @property
    def token(self) -> Optional[str]:
        return self._token_store.get()

    @property
    def needs_registration(self) -> bool:
        return self._needs_registration

    @property
    def user_type(self) -> Optional[UserType]:
        return self._user_type

    @property
    def user(self) -> Optional[UserProfile]:
        return self._user

    def can_access_main(self) -> bool:
        # Both conditions must hold; a partially registered session stays in the auth flow
        return self.is_logged_in and not self._needs_registration

    def route(self) -> Route:
        return Route.MAIN if self.can_access_main() else Route.AUTH

    # Mutators below are called by AuthWorkflow only

    def set_user_type(self, user_type: UserType) -> None:
        self._user_type = user_type

    def set_user(self, user: Optional[UserProfile]) -> None:
        self._user = user

    def set_needs_registration(self, value: bool) -> None:
        self._needs_registration = value

    def clear(self) -> None:
        self._needs_registration = False
        self._user_type = None
        self._user = None

    def snapshot(self) -> dict:
        """Plain view of the session for display and logging."""
        return {
            "is_logged_in": self.is_logged_in,
            "needs_registration": self._needs_registration,
            "user_type": self._user_type.value if self._user_type else None,
            "user_id": self._user.id if self._user else None,
        }
