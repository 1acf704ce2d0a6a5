# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Encrypted audit trail.

Who did what to which resource is stored in the clear so it can be queried;
the client's IP address, user agent and free-form details are sealed into a
single envelope.  The plain-text log line only carries the non-sensitive
part.
"""

import json
from typing import Any, Optional

from sqlalchemy.orm import Session

from core.logger import logger
from core.security import EncryptionService, generate_token
from models.audit_log import SecureAuditLog

VALID_SEVERITIES = {"info", "warning", "error", "critical"}


def log_secure_event(
    db: Session,
    encryption: EncryptionService,
    action: str,
    *,
    actor: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
    severity: str = "info",
) -> SecureAuditLog:
    """Add an audit row to *db* (the caller commits) and return it."""
    if severity not in VALID_SEVERITIES:
        raise ValueError(f"Unknown severity: {severity}")

    sensitive = {"ipAddress": ip_address, "userAgent": user_agent, "details": details}
    entry = SecureAuditLog(
        id=generate_token(16),
        action=action,
        actor=actor,
        resource_type=resource_type,
        resource_id=resource_id,
        severity=severity,
        encrypted_data=encryption.encrypt(json.dumps(sensitive, default=str)),
    )
    db.add(entry)

    logger.info(
        "audit id=%s action=%s actor=%s resource=%s/%s severity=%s",
        entry.id,
        action,
        actor or "anonymous",
        resource_type or "-",
        resource_id or "-",
        severity,
    )
    return entry
