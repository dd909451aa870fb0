"""Data models for the MAi Drive client"""

from .auth import (
    CompleteRegistrationRequest,
    CompleteRegistrationResponse,
    ErrorResponse,
    RequestVerificationRequest,
    RequestVerificationResponse,
    UserProfile,
    UserType,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from .ui_state import CodeSent, Failed, Initial, Loading, Registered, ScreenState, Verified

__all__ = [
    "CompleteRegistrationRequest",
    "CompleteRegistrationResponse",
    "ErrorResponse",
    "RequestVerificationRequest",
    "RequestVerificationResponse",
    "UserProfile",
    "UserType",
    "VerifyCodeRequest",
    "VerifyCodeResponse",
    "CodeSent",
    "Failed",
    "Initial",
    "Loading",
    "Registered",
    "ScreenState",
    "Verified",
]
