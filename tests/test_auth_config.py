import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from twilio.base.exceptions import TwilioException

from otpauth.auth import AuthConfig, OtpAuth
from otpauth.core.config import Settings
from otpauth.exceptions import ConfigurationError, DeliveryError
from otpauth.infrastructure.audit.std_logger import StdAuditLogger
from otpauth.infrastructure.persistence.memory.otp_store_memory import InMemoryOtpCodeStore
from otpauth.infrastructure.sms.twilio_transport import TwilioSmsTransport
from otpauth.utils import hash_phone_number

from conftest import PHONE, SECRET, FakeSms, FakeUserDirectory


@pytest.fixture
def settings():
    return Settings(JWT_SECRET_KEY=SECRET, OTP_TTL_SECONDS=120)


@pytest.mark.parametrize("missing", ["sms_transport", "user_directory"])
def test_missing_required_capability_fails_fast(settings, missing):
    kwargs = {"sms_transport": FakeSms(), "user_directory": FakeUserDirectory()}
    kwargs.pop(missing)

    with pytest.raises(ConfigurationError) as exc:
        OtpAuth(AuthConfig(**kwargs), settings=settings)
    assert missing in str(exc.value)


def test_setters_replace_capabilities(settings):
    auth = OtpAuth(AuthConfig(sms_transport=FakeSms(), user_directory=FakeUserDirectory()), settings=settings)
    replacement = FakeSms()

    auth.set_sms_transport(replacement)

    assert auth.config.sms_transport is replacement
    with pytest.raises(ConfigurationError):
        auth.set_user_directory(None)


def test_path_helpers_follow_prefix():
    auth = OtpAuth(
        AuthConfig(sms_transport=FakeSms(), user_directory=FakeUserDirectory()),
        settings=Settings(JWT_SECRET_KEY=SECRET, AUTH_PREFIX="/api/auth/"),
    )

    assert auth.otp_path == "/api/auth/otp"
    assert auth.login_path == "/api/auth/login"
    assert auth.register_path == "/api/auth/register"
    assert auth.user_path == "/api/auth/user"


def test_initialize_fills_defaults_and_keeps_overrides(settings):
    def custom_otp_handler():
        return {"custom": True}

    config = AuthConfig(
        sms_transport=FakeSms(),
        user_directory=FakeUserDirectory(),
        otp_store=InMemoryOtpCodeStore(),
        otp_handler=custom_otp_handler,
    )
    app = FastAPI()

    OtpAuth(config, settings=settings).initialize(app)

    assert config.otp_handler is custom_otp_handler
    assert config.login_handler is not None
    assert config.auth_gate is not None
    client = TestClient(app)
    assert client.post("/auth/otp").json() == {"custom": True}
    assert client.get("/auth/user").status_code == 401


class FakeMessages:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def create(self, to, from_, body):
        if self.error:
            raise self.error
        self.calls.append({"to": to, "from_": from_, "body": body})
        return type("Message", (), {"sid": "SM123"})


class FakeTwilioClient:
    def __init__(self, error=None):
        self.messages = FakeMessages(error)


def _twilio_settings(**overrides):
    values = {"TWILIO_ACCOUNT_SID": "AC123", "TWILIO_AUTH_TOKEN": "token", "TWILIO_PHONE_NUMBER": "+15550001111"}
    values.update(overrides)
    return Settings(JWT_SECRET_KEY=SECRET, **values)


def test_twilio_transport_sends_code_in_body():
    client = FakeTwilioClient()
    transport = TwilioSmsTransport(client=client, settings=_twilio_settings())

    transport.send(PHONE, "654321")

    assert client.messages.calls == [{"to": PHONE, "from_": "+15550001111", "body": "Your verification code is 654321"}]


def test_twilio_errors_become_delivery_errors():
    transport = TwilioSmsTransport(client=FakeTwilioClient(TwilioException("boom")), settings=_twilio_settings())

    with pytest.raises(DeliveryError):
        transport.send(PHONE, "654321")


def test_twilio_without_sender_number_cannot_deliver():
    transport = TwilioSmsTransport(client=FakeTwilioClient(), settings=_twilio_settings(TWILIO_PHONE_NUMBER=""))

    with pytest.raises(DeliveryError):
        transport.send(PHONE, "654321")


def test_audit_log_hashes_phone(caplog):
    audit = StdAuditLogger()

    with caplog.at_level(logging.INFO):
        audit.log("login", PHONE, registered=False)

    line = caplog.records[-1].getMessage()
    assert line.startswith("AUDIT: ")
    assert hash_phone_number(PHONE) in line
    assert PHONE not in line
