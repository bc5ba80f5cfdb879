from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from ...utils import as_utc


@dataclass(frozen=True)
class OtpRecord:
    id: int
    phone: str
    code: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return as_utc(now) >= as_utc(self.expires_at)


class OtpCodeStore(Protocol):
    def insert(self, phone: str, code: str, expires_at: datetime, issued_at: Optional[datetime] = None) -> OtpRecord:
        """Append a new record; never overwrites. Raises StorageError."""
        ...

    def find_latest(self, phone: str) -> OtpRecord:
        """Newest record for phone by creation order. Raises NotFound or StorageError."""
        ...
