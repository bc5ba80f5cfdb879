from typing import Optional, Dict, Any, Protocol


class AuditLogger(Protocol):
    def log(self, action: str, phone: str, success: bool = True, registered: Optional[bool] = None, details: Optional[Dict[str, Any]] = None) -> None:
        ...
