# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Upload endpoints – secure upload, download and delete.

Security invariants enforced by every handler
---------------------------------------------
* Every request passes the ``general`` rate-limit profile first.
* ``adminOnly`` uploads, downloads of admin-only files, and deletes require
  an admin bearer token.
* Validation and scan rejections answer 400 with a specific message; the
  decrypted body of an encrypted object is only ever streamed back, never
  logged or persisted.
"""

from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, Response, UploadFile, status
from sqlalchemy.orm import Session

from core.audit import log_secure_event
from core.deps import get_encryption_service, get_upload_pipeline
from core.logger import logger
from core.security import EncryptionService, get_client_ip, get_optional_principal, is_admin, require_admin
from database import get_db
from models.stored_file import StoredFile
from ratelimit.dependency import RateLimit
from ratelimit.limiter import RateLimitDecision
from upload.buckets import options_for_bucket
from upload.pipeline import SecureUploadPipeline
from upload.schemas import (
    CandidateFile,
    SecureUploadResponse,
    SecuritySummary,
    UploadErrorResponse,
)

router = APIRouter(prefix="/upload", tags=["upload"])

_general_limit = RateLimit("general")


def _flag(value: Optional[str]) -> bool:
    return value == "true"


def _actor(principal: Optional[dict]) -> Optional[str]:
    return principal.get("sub") if principal else None


# ---------------------------------------------------------------------------
# POST /upload/secure  – validate, scan, (encrypt), store
# ---------------------------------------------------------------------------


@router.post("/secure")
def secure_upload(
    request: Request,
    response: Response,
    file: UploadFile = File(...),
    bucket: str = Form("casino-logos"),
    encrypt: Optional[str] = Form(None),
    virus_scan: Optional[str] = Form(None, alias="virusScan"),
    admin_only: Optional[str] = Form(None, alias="adminOnly"),
    principal: Optional[dict] = Depends(get_optional_principal),
    pipeline: SecureUploadPipeline = Depends(get_upload_pipeline),
    encryption: EncryptionService = Depends(get_encryption_service),
    db: Session = Depends(get_db),
    _limit: Optional[RateLimitDecision] = Depends(_general_limit),
):
    """
    Multipart upload.  ``encrypt``, ``virusScan`` and ``adminOnly`` are
    enabled by the literal string ``"true"``; anything else means off.
    """
    options = options_for_bucket(
        bucket,
        encrypt_file=_flag(encrypt),
        virus_scan=_flag(virus_scan),
        admin_only=_flag(admin_only),
    )
    if options.admin_only and not is_admin(principal):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")

    outcome = None
    try:
        # never buffer more than the bucket allows; one byte over is enough
        # for validate_file to reject with the size message
        data = file.file.read(options.max_size + 1)
        candidate = CandidateFile.from_bytes(
            file.filename or "upload",
            file.content_type or "application/octet-stream",
            data,
        )
        logger.info(
            "Secure upload starting: bucket=%s size=%d type=%s encrypted=%s scan=%s",
            bucket,
            candidate.size,
            candidate.content_type,
            options.encrypt_file,
            options.virus_scan,
        )

        outcome = pipeline.upload(candidate, options)
        if not outcome.success:
            if outcome.scan_result is not None:
                log_secure_event(
                    db,
                    encryption,
                    "file_upload_blocked",
                    actor=_actor(principal),
                    ip_address=get_client_ip(request),
                    user_agent=request.headers.get("user-agent"),
                    resource_type="bucket",
                    resource_id=bucket,
                    details={"fileName": candidate.name, "threats": outcome.scan_result.threats},
                    severity="warning",
                )
                db.commit()
            response.status_code = status.HTTP_400_BAD_REQUEST
            return UploadErrorResponse(error=outcome.error, scan_result=outcome.scan_result).to_wire()

        object_key = outcome.encrypted_file_name or outcome.file_name
        db.add(StoredFile(
            bucket=bucket,
            object_key=object_key,
            file_name=outcome.file_name,
            original_name=pipeline.guard.sanitize_file_name(candidate.name),
            content_type=candidate.content_type,
            size=candidate.size,
            encrypted=options.encrypt_file,
            admin_only=options.admin_only,
            uploaded_by=_actor(principal),
            url=outcome.url,
        ))
        log_secure_event(
            db,
            encryption,
            "file_upload",
            actor=_actor(principal),
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("user-agent"),
            resource_type="file",
            resource_id=f"{bucket}/{object_key}",
            details={"fileName": candidate.name, "size": candidate.size, "type": candidate.content_type},
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Secure upload failed unexpectedly")
        if outcome is not None and outcome.success:
            # no metadata row will point at the object, so remove it
            stored_key = outcome.encrypted_file_name or outcome.file_name
            cleanup = pipeline.delete(stored_key, bucket)
            if not cleanup.success:
                logger.error("Orphaned object %s/%s left in storage: %s", bucket, stored_key, cleanup.error)
        response.status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        return {"error": "Internal server error"}

    return SecureUploadResponse(
        url=outcome.url,
        file_name=outcome.file_name,
        encrypted_file_name=outcome.encrypted_file_name,
        size=outcome.size,
        type=outcome.type,
        scan_result=outcome.scan_result,
        security=SecuritySummary(
            encrypted=options.encrypt_file,
            virus_scanned=outcome.scan_result is not None,
            is_clean=outcome.scan_result.is_clean if outcome.scan_result else True,
        ),
    ).to_wire()


# ---------------------------------------------------------------------------
# GET /upload/files/{bucket}/{file_name}  – download (decrypting if needed)
# ---------------------------------------------------------------------------


def _stored_file(db: Session, bucket: str, file_name: str) -> StoredFile:
    record = (
        db.query(StoredFile)
        .filter(StoredFile.bucket == bucket, StoredFile.object_key == file_name)
        .first()
    )
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return record


@router.get("/files/{bucket}/{file_name}")
def download_file(
    bucket: str,
    file_name: str,
    principal: Optional[dict] = Depends(get_optional_principal),
    pipeline: SecureUploadPipeline = Depends(get_upload_pipeline),
    db: Session = Depends(get_db),
    limit: Optional[RateLimitDecision] = Depends(_general_limit),
):
    """
    Stream an object back.  Objects stored encrypted are decrypted first,
    so the caller always receives the bytes that were originally uploaded.
    """
    record = _stored_file(db, bucket, file_name)
    if record.admin_only and not is_admin(principal):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")

    outcome = pipeline.download(record.object_key, bucket, is_encrypted=record.encrypted)
    if not outcome.success:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=outcome.error)

    headers = limit.headers() if limit else {}
    headers["Content-Disposition"] = f"attachment; filename*=UTF-8''{quote(record.file_name)}"
    return Response(content=outcome.data, media_type=record.content_type, headers=headers)


# ---------------------------------------------------------------------------
# DELETE /upload/files/{bucket}/{file_name}  – admin only
# ---------------------------------------------------------------------------


@router.delete("/files/{bucket}/{file_name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_file(
    bucket: str,
    file_name: str,
    request: Request,
    admin: dict = Depends(require_admin),
    pipeline: SecureUploadPipeline = Depends(get_upload_pipeline),
    encryption: EncryptionService = Depends(get_encryption_service),
    db: Session = Depends(get_db),
    _limit: Optional[RateLimitDecision] = Depends(_general_limit),
):
    """Remove the object from storage, then its metadata row."""
    record = _stored_file(db, bucket, file_name)

    outcome = pipeline.delete(record.object_key, bucket)
    if not outcome.success:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=outcome.error)

    db.delete(record)
    log_secure_event(
        db,
        encryption,
        "file_delete",
        actor=_actor(admin),
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        resource_type="file",
        resource_id=f"{bucket}/{file_name}",
    )
    db.commit()
