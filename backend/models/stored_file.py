# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""StoredFile ORM model – one row per object accepted by the upload pipeline."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from database import Base


class StoredFile(Base):
    __tablename__ = "stored_files"
    __table_args__ = (UniqueConstraint("bucket", "object_key", name="uq_stored_files_bucket_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    bucket = Column(String(64), nullable=False, index=True)
    # Key in object storage.  For encrypted uploads this is the
    # "encrypted-…" name, never the plain secure name.
    object_key = Column(String(255), nullable=False)
    file_name = Column(String(255), nullable=False)       # generated secure name
    original_name = Column(String(255), nullable=False)   # sanitised client name
    content_type = Column(String(128), nullable=False)    # type of the plaintext file
    size = Column(Integer, nullable=False)
    encrypted = Column(Boolean, nullable=False, default=False)
    admin_only = Column(Boolean, nullable=False, default=False)
    uploaded_by = Column(String(255), nullable=True)      # JWT sub, NULL for anonymous
    url = Column(String(2048), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
