import logging
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from ..base_repository import BaseRepository
from .....db.models import User
from .....application.ports.user_directory import UserDirectory, UserDto
from .....exceptions import NotFound, RegistrationError, StorageError
from .....utils import as_utc

logger = logging.getLogger(__name__)

# Columns a registration payload may set; anything else is ignored
REGISTRABLE_FIELDS = ("name", "email")


class SqlUserDirectory(UserDirectory):
    def __init__(self, base: BaseRepository):
        self.base = base

    def _to_dto(self, user: User) -> UserDto:
        return UserDto(
            id=user.id,
            phone=user.phone,
            name=user.name,
            email=user.email,
            created_at=as_utc(user.created_at),
        )

    def is_registered(self, phone: str) -> bool:
        try:
            with self.base.session() as session:
                return session.exec(select(User.id).where(User.phone == phone)).first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Error checking registration: {e}")
            raise StorageError("failed to read users") from e

    def register(self, payload: Dict[str, Any]) -> UserDto:
        phone = payload.get("phone")
        if not phone:
            raise RegistrationError("phone is required")
        fields = {key: payload[key] for key in REGISTRABLE_FIELDS if payload.get(key) is not None}
        user = User(phone=phone, **fields)
        try:
            with self.base.session() as session:
                session.add(user)
                session.commit()
                session.refresh(user)
                return self._to_dto(user)
        except IntegrityError as e:
            logger.info("Registration rejected: phone already has a user record")
            raise RegistrationError("user already exists") from e
        except SQLAlchemyError as e:
            logger.error(f"Error registering user: {e}")
            raise StorageError("failed to store user") from e

    def find_by_phone(self, phone: str) -> UserDto:
        try:
            with self.base.session() as session:
                user = session.exec(select(User).where(User.phone == phone)).first()
        except SQLAlchemyError as e:
            logger.error(f"Error getting user by phone: {e}")
            raise StorageError("failed to read users") from e
        if user is None:
            raise NotFound("user not found")
        return self._to_dto(user)
