import json
import logging
from typing import Optional, Dict, Any

from ...application.ports.audit_logger import AuditLogger
from ...utils import hash_phone_number, utcnow


class StdAuditLogger(AuditLogger):
    """Writes one ``AUDIT: {json}`` line per auth event; phones are hashed, codes never appear."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(__name__)

    def log(self, action: str, phone: str, success: bool = True, registered: Optional[bool] = None, details: Optional[Dict[str, Any]] = None) -> None:
        entry = {
            "timestamp": utcnow().isoformat(),
            "action": action,
            "phone_hash": hash_phone_number(phone),
            "success": success,
            "registered": registered,
            "details": details or {},
        }
        self._logger.info(f"AUDIT: {json.dumps(entry)}")
