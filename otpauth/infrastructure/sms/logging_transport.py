import logging

from ...application.ports.sms_transport import SmsTransport

logger = logging.getLogger(__name__)


class LoggingSmsTransport(SmsTransport):
    """Development transport: writes the code to the log instead of sending it."""

    def send(self, phone: str, code: str) -> None:
        logger.warning(f"SMS delivery disabled, OTP for {phone}: {code}")
