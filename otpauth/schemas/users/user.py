# otpauth/schemas/users/user.py
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class RegisterRequest(BaseModel):
    # Hosts may post extra fields for their own directory implementation
    model_config = ConfigDict(extra='allow')

    name: Optional[str] = Field(None, max_length=100, description="User's full name")
    email: Optional[str] = Field(None, max_length=100, description="Contact email")


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    phone: str
    name: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime
