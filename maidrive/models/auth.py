"""Auth API wire models"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserType(str, Enum):
    """Account kind requested at sign-in"""
    PASSENGER = "passenger"
    DRIVER = "driver"


class WireModel(BaseModel):
    """Base for API payloads: camelCase on the wire, unknown fields ignored"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UserProfile(WireModel):
    """User record as returned by the backend"""
    id: str
    phone_number: str = Field(alias="phoneNumber")
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None
    is_phone_verified: bool = Field(default=False, alias="isPhoneVerified")


class RequestVerificationRequest(WireModel):
    phone_number: str = Field(alias="phoneNumber")
    user_type: UserType = Field(default=UserType.PASSENGER, alias="userType")


class RequestVerificationResponse(WireModel):
    message: str = ""
    code: str = ""
    verification_code: str = ""
    notification_text: str = ""
    success: bool = True
    phone_number: str = Field(default="", alias="phoneNumber")
    user_type: str = Field(default=UserType.PASSENGER.value, alias="userType")


class VerifyCodeRequest(WireModel):
    phone_number: str = Field(alias="phoneNumber")
    code: str


class VerifyCodeResponse(WireModel):
    success: bool = True
    message: str = ""
    token: str = ""
    user_id: str = Field(default="", alias="userId")
    is_new_user: bool = Field(default=False, alias="isNewUser")
    user: Optional[UserProfile] = None
    user_type: str = Field(default=UserType.PASSENGER.value, alias="userType")
    requires_registration: bool = Field(default=False, alias="requiresRegistration")


class CompleteRegistrationRequest(WireModel):
    """
    Registration payload.

    The backend reads fullName; firstName/lastName are sent alongside it
    so newer servers can store the parts separately.
    """
    user_id: str = Field(alias="userId")
    phone_number: str = Field(alias="phoneNumber")
    first_name: str = Field(alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["fullName"] = " ".join(
            part for part in (self.first_name, self.last_name) if part
        )
        return payload


class CompleteRegistrationResponse(WireModel):
    message: str = ""
    passenger_id: str = Field(default="", alias="passengerId")
    user_id: str = Field(default="", alias="userId")
    success: bool = True


class ErrorResponse(WireModel):
    message: str = ""
    success: bool = False
