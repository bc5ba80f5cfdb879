from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Protocol


@dataclass
class UserDto:
    id: str
    phone: str
    name: Optional[str]
    email: Optional[str]
    created_at: datetime


class UserDirectory(Protocol):
    def is_registered(self, phone: str) -> bool:
        ...

    def register(self, payload: Dict[str, Any]) -> UserDto:
        ...

    def find_by_phone(self, phone: str) -> UserDto:
        ...
