# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Secure upload pipeline.

    received → validated → scanned? → encrypted? → stored → success

Every stage runs only after the previous one succeeded; the first failure
ends the call with a failure outcome.  Stages raise the typed errors from
``core.errors`` and the public methods convert them to outcomes, so a
rejection is never silently dropped.

Encryption at rest
------------------
The raw bytes are base64-encoded and passed through
``EncryptionService.encrypt``.  The resulting envelope *string* is the
stored object body (``application/octet-stream``), which keeps one envelope
format for both text secrets and files.
"""

import base64
import binascii
from typing import Optional

from core.errors import (
    DecryptionError,
    InvalidFormat,
    InvalidInput,
    ScanRejected,
    StorageError,
    ValidationRejected,
)
from core.logger import logger
from core.security import EncryptionService
from storage.base import ObjectStorage
from upload.guard import FileUploadGuard
from upload.scanner import SignatureThreatScanner, ThreatScanner
from upload.schemas import (
    CandidateFile,
    DeleteOutcome,
    DownloadOutcome,
    ScanResult,
    UploadOptions,
    UploadOutcome,
)

ENCRYPTED_PREFIX = "encrypted-"
ENCRYPTED_CONTENT_TYPE = "application/octet-stream"


class SecureUploadPipeline:
    def __init__(
        self,
        encryption: EncryptionService,
        storage: ObjectStorage,
        scanner: Optional[ThreatScanner] = None,
        guard: Optional[FileUploadGuard] = None,
    ):
        self.encryption = encryption
        self.storage = storage
        self.scanner = scanner or SignatureThreatScanner()
        self.guard = guard or FileUploadGuard()

    # -- file body transforms -----------------------------------------------

    def encrypt_file_bytes(self, data: bytes) -> str:
        return self.encryption.encrypt(base64.b64encode(data).decode("ascii"))

    def decrypt_file_bytes(self, envelope: str) -> bytes:
        try:
            return base64.b64decode(self.encryption.decrypt(envelope), validate=True)
        except binascii.Error as exc:
            raise InvalidFormat("file body is not base64") from exc

    # -- upload ---------------------------------------------------------------

    def upload(self, file: CandidateFile, options: UploadOptions) -> UploadOutcome:
        if not isinstance(file, CandidateFile):
            raise InvalidInput("Invalid input: file must be a CandidateFile")

        try:
            return self._upload(file, options)
        except ValidationRejected as exc:
            logger.info("Upload rejected (%s): %s", options.bucket, exc)
            return UploadOutcome(success=False, error=str(exc))
        except ScanRejected as exc:
            logger.warning("Upload blocked by scanner (%s): %s", options.bucket, exc)
            return UploadOutcome(success=False, error=str(exc), scan_result=exc.scan_result)
        except StorageError as exc:
            logger.error("Upload to %s failed: %s", options.bucket, exc)
            return UploadOutcome(success=False, error=f"Upload failed: {exc}")

    def _upload(self, file: CandidateFile, options: UploadOptions) -> UploadOutcome:
        validation = self.guard.validate_file(file, options)
        if not validation.is_valid:
            raise ValidationRejected(validation.error)

        scan_result: Optional[ScanResult] = None
        if options.virus_scan:
            scan_result = self.scanner.scan(file.data)
            if not scan_result.is_clean:
                raise ScanRejected(scan_result)

        secure_name = self.guard.generate_secure_file_name(validation.sanitized_name, options.bucket)

        body, content_type, object_key = file.data, file.content_type, secure_name
        if options.encrypt_file:
            body = self.encrypt_file_bytes(file.data).encode("utf-8")
            content_type = ENCRYPTED_CONTENT_TYPE
            object_key = ENCRYPTED_PREFIX + secure_name

        self.storage.put(options.bucket, object_key, body, content_type)

        logger.info(
            "Stored %s/%s (%d bytes, encrypted=%s, scanned=%s)",
            options.bucket,
            object_key,
            file.size,
            options.encrypt_file,
            scan_result is not None,
        )
        return UploadOutcome(
            success=True,
            url=self.storage.public_url(options.bucket, object_key),
            file_name=secure_name,
            encrypted_file_name=object_key if options.encrypt_file else None,
            size=file.size,
            type=file.content_type,
            scan_result=scan_result,
        )

    # -- download / delete ----------------------------------------------------

    def download(self, file_name: str, bucket: str, is_encrypted: bool = False) -> DownloadOutcome:
        try:
            data = self.storage.get(bucket, file_name)
        except StorageError as exc:
            return DownloadOutcome(success=False, error=f"Download failed: {exc}")

        if is_encrypted:
            try:
                data = self.decrypt_file_bytes(data.decode("utf-8"))
            except UnicodeDecodeError:
                return DownloadOutcome(success=False, error=str(DecryptionError()))
            except DecryptionError as exc:
                logger.warning("Decryption of %s/%s failed", bucket, file_name)
                return DownloadOutcome(success=False, error=str(exc))

        return DownloadOutcome(success=True, data=data)

    def delete(self, file_name: str, bucket: str) -> DeleteOutcome:
        try:
            self.storage.delete(bucket, file_name)
        except StorageError as exc:
            return DeleteOutcome(success=False, error=f"Delete failed: {exc}")
        return DeleteOutcome(success=True)
