# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""SecureAuditLog ORM model – security-relevant actions, sensitive part encrypted."""

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from database import Base


class SecureAuditLog(Base):
    __tablename__ = "secure_audit_logs"

    id = Column(String(32), primary_key=True)                 # 16 random bytes, hex
    action = Column(String(64), nullable=False, index=True)   # e.g. "file_upload"
    actor = Column(String(255), nullable=True, index=True)    # JWT sub, NULL for anonymous
    resource_type = Column(String(64), nullable=True)
    resource_id = Column(String(255), nullable=True)
    severity = Column(String(16), nullable=False, default="info")
    # Envelope of {"ipAddress", "userAgent", "details"}.  Never plaintext.
    encrypted_data = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
