# otpauth/db/models/auth/otp.py
from sqlalchemy import Column, DateTime
from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional

from ....utils import utcnow


class OTPCode(SQLModel, table=True):
    __tablename__ = "otp_codes"
    # Autoincrement id doubles as the creation-order tiebreak for "latest"
    id: Optional[int] = Field(default=None, primary_key=True)
    phone: str = Field(max_length=20, index=True)
    code: str = Field(max_length=6)
    issued_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
    expires_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False, index=True))
