import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from ..base_repository import BaseRepository
from .....db.models import OTPCode
from .....application.ports.otp_store import OtpCodeStore, OtpRecord
from .....exceptions import NotFound, StorageError
from .....utils import as_utc, utcnow

logger = logging.getLogger(__name__)


class SqlOtpCodeStore(OtpCodeStore):
    def __init__(self, base: BaseRepository):
        self.base = base

    def _to_record(self, row: OTPCode) -> OtpRecord:
        return OtpRecord(
            id=row.id,
            phone=row.phone,
            code=row.code,
            issued_at=as_utc(row.issued_at),
            expires_at=as_utc(row.expires_at),
        )

    def insert(self, phone: str, code: str, expires_at: datetime, issued_at: Optional[datetime] = None) -> OtpRecord:
        row = OTPCode(
            phone=phone,
            code=code,
            issued_at=as_utc(issued_at) if issued_at else utcnow(),
            expires_at=as_utc(expires_at),
        )
        try:
            with self.base.session() as session:
                session.add(row)
                session.commit()
                session.refresh(row)
                return self._to_record(row)
        except SQLAlchemyError as e:
            logger.error(f"Error inserting OTP code: {e}")
            raise StorageError("failed to store OTP code") from e

    def find_latest(self, phone: str) -> OtpRecord:
        try:
            with self.base.session() as session:
                row = session.exec(
                    select(OTPCode).where(OTPCode.phone == phone).order_by(OTPCode.id.desc()).limit(1)
                ).first()
        except SQLAlchemyError as e:
            logger.error(f"Error reading OTP code: {e}")
            raise StorageError("failed to read OTP code") from e
        if row is None:
            raise NotFound("no OTP code for phone")
        return self._to_record(row)

    def purge_expired(self, before: datetime) -> int:
        """Delete rows that expired before ``before``; housekeeping for host applications."""
        try:
            with self.base.session() as session:
                expired = session.exec(
                    select(OTPCode).where(OTPCode.expires_at < as_utc(before))
                ).all()
                for row in expired:
                    session.delete(row)
                session.commit()
                return len(expired)
        except SQLAlchemyError as e:
            logger.error(f"Error purging expired OTP codes: {e}")
            raise StorageError("failed to purge OTP codes") from e
