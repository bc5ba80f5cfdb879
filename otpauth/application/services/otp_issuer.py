import logging
import random
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable

from ..ports.otp_store import OtpCodeStore, OtpRecord
from ..ports.sms_transport import SmsTransport
from ...exceptions import DeliveryError
from ...utils import utcnow

logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999

# Seeded once by the OS for the life of the process; never reseeded per call
_system_random = secrets.SystemRandom()


def generate_otp_code(rng: random.Random = _system_random) -> str:
    """Six digit code drawn uniformly from [100000, 999999]."""
    return str(rng.randint(OTP_MIN, OTP_MAX))


@dataclass
class OtpIssuer:
    store: OtpCodeStore
    transport: SmsTransport
    ttl: timedelta
    clock: Callable[[], datetime] = utcnow
    rng: random.Random = field(default=_system_random, repr=False)

    def issue_otp(self, phone: str) -> OtpRecord:
        """Generate, store and deliver a fresh code for ``phone``.

        The record is written before delivery and is kept when delivery
        fails, so an undelivered code stays valid until it expires.
        """
        code = generate_otp_code(self.rng)
        issued_at = self.clock()
        record = self.store.insert(phone, code, issued_at + self.ttl, issued_at=issued_at)

        try:
            self.transport.send(phone, code)
        except DeliveryError:
            logger.error(f"OTP delivery failed for record {record.id}")
            raise
        except Exception as e:
            logger.error(f"OTP delivery failed for record {record.id}: {e}")
            raise DeliveryError(str(e)) from e

        logger.info(f"OTP issued, record {record.id} expires at {record.expires_at.isoformat()}")
        return record
