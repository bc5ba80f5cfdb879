from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

import pytest

from otpauth.application.ports.user_directory import UserDto
from otpauth.exceptions import DeliveryError, NotFound, RegistrationError
from otpauth.utils import utcnow

SECRET = "test-secret-key-0123456789-abcdefghijklmnop"
PHONE = "+15551234567"


class FakeClock:
    def __init__(self, now: Optional[datetime] = None):
        # Starts at the real time so PyJWT's own exp check agrees with ours
        self.now = now or utcnow()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeSms:
    def __init__(self, fail: bool = False):
        self.sent: List[Tuple[str, str]] = []
        self.fail = fail

    def send(self, phone: str, code: str) -> None:
        if self.fail:
            raise DeliveryError("gateway down")
        self.sent.append((phone, code))

    def last_code(self) -> str:
        return self.sent[-1][1]


class FakeUserDirectory:
    def __init__(self):
        self.users: Dict[str, UserDto] = {}

    def is_registered(self, phone: str) -> bool:
        return phone in self.users

    def register(self, payload) -> UserDto:
        phone = payload["phone"]
        if phone in self.users:
            raise RegistrationError("exists")
        user = UserDto(id=f"user-{len(self.users) + 1}", phone=phone, name=payload.get("name"), email=payload.get("email"), created_at=utcnow())
        self.users[phone] = user
        return user

    def find_by_phone(self, phone: str) -> UserDto:
        try:
            return self.users[phone]
        except KeyError:
            raise NotFound("user not found")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sms():
    return FakeSms()


@pytest.fixture
def users():
    return FakeUserDirectory()
