# otpauth/schemas/auth/auth.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime


class OtpRequest(BaseModel):
    phone: str = Field(..., min_length=1, max_length=20, description="Phone number the code is sent to")

    @field_validator('phone')
    @classmethod
    def strip_phone(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Phone number is required')
        return v


class MessageResponse(BaseModel):
    success: bool
    message: str


class LoginRequest(OtpRequest):
    code: str = Field(..., min_length=1, max_length=10, description="Code received by SMS")


class LoginResponse(BaseModel):
    token: str
    phone: str
    registered: bool
    expiration: datetime
