import logging
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from ...core.config import Settings, settings as default_settings
from ...application.ports.sms_transport import SmsTransport
from ...exceptions import DeliveryError

logger = logging.getLogger(__name__)


class TwilioSmsTransport(SmsTransport):
    """Sends the code as a plain SMS through Twilio's Messages API."""

    def __init__(self, client: Optional[Client] = None, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        # No internal retries; delivery failures surface to the caller
        self.client = client or Client(
            self.settings.TWILIO_ACCOUNT_SID,
            self.settings.TWILIO_AUTH_TOKEN,
            http_client=TwilioHttpClient(timeout=15, max_retries=0),
        )
        self.from_number = self.settings.TWILIO_PHONE_NUMBER

    def send(self, phone: str, code: str) -> None:
        if not self.from_number:
            raise DeliveryError("Twilio sender number not configured")
        body = self.settings.SMS_MESSAGE_TEMPLATE.format(code=code)
        try:
            message = self.client.messages.create(to=phone, from_=self.from_number, body=body)
        except TwilioException as e:
            logger.error(f"Twilio error: {e}")
            raise DeliveryError(f"Failed to send OTP: {e}") from e
        logger.info(f"Twilio message queued, SID: {message.sid}")
