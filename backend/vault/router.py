# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Vault endpoints – encryption as a service for the site's admin tooling.

Security invariants enforced by every handler
---------------------------------------------
* An admin JWT is required on every endpoint (via ``require_admin``).
* Every endpoint is gated by the ``encryption`` rate-limit profile, except
  the self-test which uses the stricter ``debug`` profile.
* Decryption failures answer with one generic message, whatever the cause.
* Plaintext is returned to the caller only; it is never persisted or logged.
"""

import json

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from core.audit import log_secure_event
from core.codec import StructuredDataCodec
from core.deps import get_encryption_service, get_record_codec
from core.errors import DecryptionError, InvalidInput
from core.logger import logger
from core.security import EncryptionService, get_client_ip, require_admin
from database import get_db
from ratelimit.dependency import RateLimit
from vault.schemas import (
    DecryptRequest,
    DecryptResponse,
    EncryptRequest,
    EncryptResponse,
    HashRequest,
    HashResponse,
    RecordRequest,
    RecordResponse,
    SelfTestCase,
    SelfTestResponse,
    SelfTestSummary,
    TokenResponse,
)

router = APIRouter(
    prefix="/vault",
    tags=["vault"],
    dependencies=[Depends(require_admin)],
)

_encryption_limit = RateLimit("encryption")
_debug_limit = RateLimit("debug")


# ---------------------------------------------------------------------------
# POST /vault/encrypt  /  POST /vault/decrypt
# ---------------------------------------------------------------------------


@router.post("/encrypt", response_model=EncryptResponse, dependencies=[Depends(_encryption_limit)])
def encrypt_text(body: EncryptRequest, encryption: EncryptionService = Depends(get_encryption_service)):
    return EncryptResponse(ciphertext=encryption.encrypt(body.plaintext))


@router.post("/decrypt", response_model=DecryptResponse, dependencies=[Depends(_encryption_limit)])
def decrypt_text(
    body: DecryptRequest,
    request: Request,
    admin: dict = Depends(require_admin),
    encryption: EncryptionService = Depends(get_encryption_service),
    db: Session = Depends(get_db),
):
    """
    The only endpoint that turns an arbitrary envelope back into plaintext,
    so each call is written to the encrypted audit trail.
    """
    try:
        plaintext = encryption.decrypt(body.ciphertext)
    except DecryptionError as exc:
        logger.debug("Decrypt rejected: %s", exc.reason)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    log_secure_event(
        db,
        encryption,
        "vault_decrypt",
        actor=admin.get("sub"),
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        resource_type="envelope",
        resource_id=encryption.hash(body.ciphertext)[:16],
    )
    db.commit()
    return DecryptResponse(plaintext=plaintext)


# ---------------------------------------------------------------------------
# POST /vault/hash  /  GET /vault/token
# ---------------------------------------------------------------------------


@router.post("/hash", response_model=HashResponse, dependencies=[Depends(_encryption_limit)])
def hash_text(body: HashRequest, encryption: EncryptionService = Depends(get_encryption_service)):
    return HashResponse(hash=encryption.hash(body.text))


@router.get("/token", response_model=TokenResponse, dependencies=[Depends(_encryption_limit)])
def generate_token(
    length: int = Query(32, ge=1, le=1024),
    encryption: EncryptionService = Depends(get_encryption_service),
):
    return TokenResponse(token=encryption.generate_token(length))


# ---------------------------------------------------------------------------
# POST /vault/user-data/encrypt  /  POST /vault/user-data/decrypt
# ---------------------------------------------------------------------------


@router.post("/user-data/encrypt", response_model=RecordResponse, dependencies=[Depends(_encryption_limit)])
def encrypt_user_data(body: RecordRequest, codec: StructuredDataCodec = Depends(get_record_codec)):
    try:
        return RecordResponse(record=codec.encrypt_fields(body.record))
    except InvalidInput as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.post("/user-data/decrypt", response_model=RecordResponse, dependencies=[Depends(_encryption_limit)])
def decrypt_user_data(body: RecordRequest, codec: StructuredDataCodec = Depends(get_record_codec)):
    """Fields that fail to decrypt come back exactly as sent."""
    return RecordResponse(record=codec.decrypt_fields(body.record))


# ---------------------------------------------------------------------------
# GET /vault/self-test  – built-in validation suite
# ---------------------------------------------------------------------------

_SELF_TEST_STRINGS = [
    "Hello World!",
    "This is a longer test string with special characters: !@#$%^&*()",
    "Email: user@example.com",
    "Phone: +65 1234 5678",
    'JSON: {"name":"John","age":30}',
    "Unicode: 🎉🔐✅❌🚀",
]

_SELF_TEST_RECORDS = [
    {"email": "user@example.com", "phone": "+65 1234 5678", "personalInfo": {"name": "John Doe", "age": 30}},
    {"email": "test@unicode.com", "phone": "+81 90 1234 5678", "personalInfo": {"name": "田中太郎", "city": "東京"}},
]


def _run_case(results: list[SelfTestCase], test: str, label: str, check) -> None:
    try:
        results.append(SelfTestCase(test=test, input=label, success=bool(check())))
    except Exception as exc:  # a failing primitive is a result, not an error
        results.append(SelfTestCase(test=test, input=label, success=False, error=type(exc).__name__))


@router.get("/self-test", response_model=SelfTestResponse, dependencies=[Depends(_debug_limit)])
def self_test(encryption: EncryptionService = Depends(get_encryption_service)):
    """
    Exercise every primitive with the live key and report pass / fail.
    Only outcomes are returned – never ciphertext, hashes or tokens.
    """
    results: list[SelfTestCase] = []
    codec = StructuredDataCodec(encryption)

    for text in _SELF_TEST_STRINGS:
        _run_case(results, "String Encryption", text[:30],
                  lambda t=text: encryption.decrypt(encryption.encrypt(t)) == t)

    for text in ("password123", "short", "🔐🚀✅"):
        _run_case(results, "Hash Function", f"{len(text)} chars",
                  lambda t=text: encryption.hash(t) == encryption.hash(t) and len(encryption.hash(t)) == 64)

    for size in (8, 16, 32, 64):
        _run_case(results, "Token Generation", f"{size} bytes",
                  lambda n=size: len(encryption.generate_token(n)) == n * 2
                  and encryption.generate_token(n) != encryption.generate_token(n))

    for record in _SELF_TEST_RECORDS:
        _run_case(results, "User Data Encryption", record["email"],
                  lambda r=record: json.dumps(codec.decrypt_fields(codec.encrypt_fields(r)), sort_keys=True)
                  == json.dumps(r, sort_keys=True))

    large = "A" * 10000
    _run_case(results, "Large Data Encryption", f"{len(large)} characters",
              lambda: encryption.decrypt(encryption.encrypt(large)) == large)

    passed = sum(1 for r in results if r.success)
    total = len(results)
    if passed != total:
        logger.error("Encryption self-test: %d of %d cases failed", total - passed, total)

    return SelfTestResponse(
        success=passed == total,
        summary=SelfTestSummary(
            total_tests=total,
            passed_tests=passed,
            failed_tests=total - passed,
            success_rate=f"{passed / total * 100:.2f}%",
        ),
        results=results,
    )
