"""API request models. Bodies arrive in camelCase; fields stay snake_case in Python."""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ApiRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(ApiRequest):
    email: Optional[str] = None
    password: Optional[str] = None


class SendCodeRequest(ApiRequest):
    phone: Optional[str] = None
    captcha_token: Optional[str] = None


class VerifyCodeRequest(ApiRequest):
    phone: Optional[str] = None
    code: Optional[Union[str, int]] = None

    @field_validator("code")
    @classmethod
    def code_as_text(cls, v):
        """Forms may post the code as a JSON number"""
        if v is None or isinstance(v, str):
            return v
        return str(v)


class CreateBookingRequest(ApiRequest):
    """Public booking form"""
    services: List[str] = Field(default_factory=list)
    date: Optional[str] = None
    time: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class BookingWithSignupRequest(CreateBookingRequest):
    """Booking form that also creates a customer account"""
    password: Optional[str] = None


class UpdateBookingRequest(ApiRequest):
    status: Optional[str] = None
    notes: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None


class CreateContactRequest(ApiRequest):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    service: Optional[str] = None
    message: Optional[str] = None


class UpdateContactRequest(ApiRequest):
    status: Optional[str] = None


class UpdateProfileRequest(ApiRequest):
    name: Optional[str] = None
    email: Optional[str] = None
    current_password: Optional[str] = None
    new_password: Optional[str] = None
