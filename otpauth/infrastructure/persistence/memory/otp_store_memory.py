import itertools
import threading
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from ....application.ports.otp_store import OtpCodeStore, OtpRecord
from ....exceptions import NotFound
from ....utils import as_utc, utcnow


class InMemoryOtpCodeStore(OtpCodeStore):
    """Process-local store for development and tests. Not shared across workers."""

    def __init__(self) -> None:
        self._rows: Dict[str, List[OtpRecord]] = defaultdict(list)
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def insert(self, phone: str, code: str, expires_at: datetime, issued_at: Optional[datetime] = None) -> OtpRecord:
        with self._lock:
            record = OtpRecord(
                id=next(self._ids),
                phone=phone,
                code=code,
                issued_at=as_utc(issued_at) if issued_at else utcnow(),
                expires_at=as_utc(expires_at),
            )
            self._rows[phone].append(record)
            return record

    def find_latest(self, phone: str) -> OtpRecord:
        with self._lock:
            rows = self._rows.get(phone)
            if not rows:
                raise NotFound("no OTP code for phone")
            return rows[-1]
