import hmac
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from ..ports.otp_store import OtpCodeStore, OtpRecord
from ...exceptions import ExpiredCode, InvalidCode, NotFound
from ...utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class CredentialVerifier:
    store: OtpCodeStore
    clock: Callable[[], datetime] = utcnow

    def verify(self, phone: str, code: str) -> OtpRecord:
        """Check ``code`` against the newest record for ``phone``.

        Only the most recently created record is considered, so older
        codes stop working as soon as a new one is issued. Records are not
        consumed: a matching code keeps verifying until it expires.
        """
        try:
            record = self.store.find_latest(phone)
        except NotFound:
            logger.info("OTP verification failed: no code issued")
            raise InvalidCode("no code issued for phone")

        if not hmac.compare_digest(record.code.encode(), str(code).encode()):
            logger.info(f"OTP verification failed: mismatch on record {record.id}")
            raise InvalidCode("code mismatch")

        if record.is_expired(self.clock()):
            logger.info(f"OTP verification failed: record {record.id} expired")
            raise ExpiredCode("code expired")

        return record
