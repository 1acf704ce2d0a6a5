# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Pydantic models for the upload pipeline and its endpoints.

Field names are snake_case in Python and camelCase on the wire
(``encryptedFileName``, ``scanResult`` …), matching what the site's
frontend already consumes.
"""

from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# -- Pipeline inputs ---------------------------------------------------------


@dataclass
class CandidateFile:
    """A file as received from the client.  ``size`` is the declared size."""

    name: str
    content_type: str
    size: int
    data: bytes = b""

    @classmethod
    def from_bytes(cls, name: str, content_type: str, data: bytes) -> "CandidateFile":
        return cls(name=name, content_type=content_type, size=len(data), data=data)


class UploadOptions(_WireModel):
    bucket: str
    max_size: int                 # bytes
    allowed_types: List[str]
    encrypt_file: bool = False
    virus_scan: bool = False
    admin_only: bool = False


# -- Pipeline results --------------------------------------------------------


class FileValidationResult(_WireModel):
    is_valid: bool
    error: Optional[str] = None
    sanitized_name: Optional[str] = None


class ScanResult(_WireModel):
    is_clean: bool
    threats: Optional[List[str]] = None
    scan_time: int                # milliseconds


class UploadOutcome(_WireModel):
    success: bool
    url: Optional[str] = None
    file_name: Optional[str] = None
    encrypted_file_name: Optional[str] = None
    size: Optional[int] = None
    type: Optional[str] = None
    error: Optional[str] = None
    scan_result: Optional[ScanResult] = None


class DownloadOutcome(_WireModel):
    success: bool
    data: Optional[bytes] = None
    error: Optional[str] = None


class DeleteOutcome(_WireModel):
    success: bool
    error: Optional[str] = None


# -- HTTP responses ----------------------------------------------------------


class SecuritySummary(_WireModel):
    encrypted: bool
    virus_scanned: bool
    is_clean: bool


class SecureUploadResponse(_WireModel):
    success: bool = True
    url: str
    file_name: str
    encrypted_file_name: Optional[str] = None
    size: int
    type: str
    scan_result: Optional[ScanResult] = None
    security: SecuritySummary


class UploadErrorResponse(_WireModel):
    error: str
    scan_result: Optional[ScanResult] = None
