"""Custom exceptions for the MAi Drive client"""

from typing import Optional


class MaiDriveError(Exception):
    """Base exception for MAi Drive"""
    pass


class ValidationError(MaiDriveError):
    """Input rejected locally, before any network call"""
    pass


class InvalidPhoneFormat(ValidationError):
    """Phone number does not match the national format"""

    def __init__(self, message: str = "Invalid phone number. Enter a 10-digit number starting with 07."):
        super().__init__(message)


class InvalidCodeFormat(ValidationError):
    """Verification code is not 6 digits"""

    def __init__(self, message: str = "Invalid verification code. Enter the 6-digit code."):
        super().__init__(message)


class EmptyName(ValidationError):
    """First name is blank"""

    def __init__(self, message: str = "First name cannot be empty."):
        super().__init__(message)


class MissingContext(ValidationError):
    """Verification context lacks the phone number or user id"""

    def __init__(self, message: str = "Verification data not found. Please start again."):
        super().__init__(message)


class AuthApiError(MaiDriveError):
    """Error from the MAi Drive auth API"""
    pass


class ServerRejected(AuthApiError):
    """Server answered with an error envelope"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class TransportFailure(AuthApiError):
    """Network or parse-level fault"""

    def __init__(self, message: str = "Could not reach the server. Check your connection and try again."):
        super().__init__(message)


class OperationInProgress(MaiDriveError):
    """Another auth operation is still in flight"""

    def __init__(self, message: str = "Another request is still in progress."):
        super().__init__(message)


class SessionCancelled(MaiDriveError):
    """Result arrived after logout and was discarded"""

    def __init__(self, message: str = "Session was closed before the request finished."):
        super().__init__(message)


class ConfigError(MaiDriveError):
    """Configuration error"""
    pass


class TokenStorageError(MaiDriveError):
    """Token could not be written to or removed from storage"""

    def __init__(self, message: str = "Could not save your sign-in on this device. Please try again."):
        super().__init__(message)
