# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives and auth guards live
here.  No other module should touch raw crypto directly.

Responsibilities
----------------
1. Envelope encryption / decryption         (AES-256-GCM, ``EncryptionService``)
2. Keyed fingerprints and random tokens      (SHA-256, ``secrets``)
3. JWT creation / decoding                   (PyJWT / HS256)
4. FastAPI dependency guards                 (get_optional_principal, require_admin)

Envelope format
---------------
``<iv hex>:<auth tag hex>:<ciphertext hex>`` – 16-byte IV, 16-byte tag.
The format has no key-version byte, so rotating ENCRYPTION_KEY makes every
existing envelope undecryptable.  Rotation is not supported.
"""

import hashlib
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as _jwt        # PyJWT
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from core.config import settings
from core.errors import (
    AuthenticationFailed,
    ConfigurationError,
    InvalidFormat,
    InvalidInput,
)
from core.logger import logger

IV_LENGTH = 16   # 128 bits
TAG_LENGTH = 16  # 128 bits
KEY_LENGTH = 32  # 256 bits

_HEX = re.compile(r"[0-9a-fA-F]*")


def generate_token(byte_length: int = 32) -> str:
    """
    Hex-encoded CSPRNG output; the result is ``2 * byte_length`` characters.
    """
    if isinstance(byte_length, bool) or not isinstance(byte_length, int) or byte_length < 1:
        raise InvalidInput("Invalid input: byte length must be a positive integer")
    return secrets.token_hex(byte_length)


# ---------------------------------------------------------------------------
# 1.  AES-256-GCM – envelope encryption
# ---------------------------------------------------------------------------


class EncryptionService:
    """
    Holds the process-wide key.  Build exactly one at startup from
    ``settings.encryption_key`` and hand it to every consumer.

    Raises ``ConfigurationError`` if the key is absent or not 64 hex chars.
    """

    def __init__(self, key_hex: Optional[str]):
        if not key_hex:
            raise ConfigurationError("ENCRYPTION_KEY environment variable is required")
        if len(key_hex) != KEY_LENGTH * 2:
            raise ConfigurationError(
                f"ENCRYPTION_KEY must be {KEY_LENGTH * 2} characters ({KEY_LENGTH} bytes in hex)"
            )
        if not _HEX.fullmatch(key_hex):
            raise ConfigurationError("ENCRYPTION_KEY must be a hex string")

        # hash() salts with the configured text exactly as given
        self._key_text = key_hex
        self._aesgcm = AESGCM(bytes.fromhex(key_hex))

    def __repr__(self) -> str:
        return "EncryptionService(key=<hidden>)"

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt *plaintext* with AES-256-GCM.

        Each call generates a fresh 16-byte random IV – IV reuse with the
        same key would be catastrophic for GCM, so we never reuse.
        """
        if not isinstance(plaintext, str) or not plaintext:
            raise InvalidInput("Invalid input: text must be a non-empty string")

        iv = secrets.token_bytes(IV_LENGTH)
        # AESGCM appends the 16-byte tag to the ciphertext
        ct_and_tag = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        ciphertext, tag = ct_and_tag[:-TAG_LENGTH], ct_and_tag[-TAG_LENGTH:]
        return f"{iv.hex()}:{tag.hex()}:{ciphertext.hex()}"

    def decrypt(self, envelope: str) -> str:
        """
        Decrypt a value produced by :meth:`encrypt`.

        Raises ``InvalidFormat`` for malformed envelopes and
        ``AuthenticationFailed`` when the GCM tag does not verify.  Both carry
        the same generic message.
        """
        if not isinstance(envelope, str) or not envelope:
            raise InvalidFormat("empty or non-string envelope")

        parts = envelope.split(":")
        if len(parts) != 3:
            raise InvalidFormat("expected iv:authTag:encryptedData")
        if not all(_HEX.fullmatch(p) and len(p) % 2 == 0 for p in parts):
            raise InvalidFormat("segment is not valid hex")

        iv, tag, ciphertext = (bytes.fromhex(p) for p in parts)
        if len(iv) != IV_LENGTH:
            raise InvalidFormat(f"invalid IV length, expected {IV_LENGTH} bytes")
        if len(tag) != TAG_LENGTH:
            raise InvalidFormat(f"invalid auth tag length, expected {TAG_LENGTH} bytes")

        try:
            plaintext_bytes = self._aesgcm.decrypt(iv, ciphertext + tag, None)
        except InvalidTag as exc:
            raise AuthenticationFailed("authentication tag mismatch") from exc

        try:
            return plaintext_bytes.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidFormat("plaintext is not UTF-8") from exc

    # -----------------------------------------------------------------------
    # 2.  Fingerprints and tokens
    # -----------------------------------------------------------------------

    def hash(self, text: str) -> str:
        """One-way keyed fingerprint: SHA-256 over ``text + ENCRYPTION_KEY``."""
        if not isinstance(text, str):
            raise InvalidInput("Invalid input: text must be a string")
        return hashlib.sha256((text + self._key_text).encode("utf-8")).hexdigest()

    def generate_token(self, byte_length: int = 32) -> str:
        return generate_token(byte_length)


# ---------------------------------------------------------------------------
# 3.  JWT – access tokens
# ---------------------------------------------------------------------------
# Tokens are issued by the site's auth layer; this service only verifies
# them.  create_access_token exists for bin/gen_secrets.py and the tests.


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign a JWT with HS256.

    *data* should contain at minimum: sub (email) and role.
    An ``exp`` claim is added automatically.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode["exp"] = expire
    return _jwt.encode(to_encode, settings.secret_key, algorithm="HS256")


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT.  Raises HTTP 401 on any failure (expired,
    bad signature, malformed).
    """
    try:
        return _jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    except (_jwt.ExpiredSignatureError, _jwt.InvalidTokenError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


# ---------------------------------------------------------------------------
# 4.  FastAPI dependency guards
# ---------------------------------------------------------------------------

# auto_error=False: anonymous uploads are allowed, so a missing header must
# not short-circuit with 401 before the route decides.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_optional_principal(token: Optional[str] = Depends(oauth2_scheme)) -> Optional[dict]:
    """
    Dependency: the verified JWT claims, or None when no bearer token was
    sent.  A token that is present but invalid still yields 401.
    """
    if not token:
        return None
    return decode_access_token(token)


def is_admin(principal: Optional[dict]) -> bool:
    return bool(principal) and principal.get("role") == "admin"


def require_admin(principal: Optional[dict] = Depends(get_optional_principal)) -> dict:
    """
    Dependency: asserts a bearer token with ``role == 'admin'``.
    Raises 401 without a token and 403 for non-admin roles.
    """
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not is_admin(principal):
        logger.warning("Admin access denied for %s", principal.get("sub", "unknown"))
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return principal


# -- IP Address extraction ----------------------------------------------------


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request.
    Checks X-Forwarded-For header first (for proxies), then falls back to client host.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first (original client)
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"
