# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Exception taxonomy shared by every vaultgate component.

Cryptographic failures deliberately share one generic message so that a
caller (or attacker) cannot tell tampering apart from corruption.
"""

DECRYPTION_FAILED = "Decryption operation failed"


class VaultGateError(Exception):
    """Base class for all errors raised by this service."""


class ConfigurationError(VaultGateError):
    """Bad or missing configuration.  Fatal, raised at startup only."""


class InvalidInput(VaultGateError):
    """The caller passed an empty or wrongly typed value."""


class DecryptionError(VaultGateError):
    """
    Generic decryption failure.  ``str()`` never reveals the cause; the
    internal ``reason`` is only meant for debug logging.
    """

    def __init__(self, reason: str = ""):
        super().__init__(DECRYPTION_FAILED)
        self.reason = reason


class InvalidFormat(DecryptionError):
    """Envelope is malformed: wrong segment count, bad hex, bad lengths."""


class AuthenticationFailed(DecryptionError):
    """GCM tag verification failed."""


class ValidationRejected(VaultGateError):
    """File rejected by the upload guard.  The message is safe to expose."""


class ScanRejected(VaultGateError):
    """Threat signatures matched.  Carries the ScanResult."""

    def __init__(self, scan_result):
        threats = ", ".join(scan_result.threats or [])
        super().__init__(f"File failed virus scan: {threats}")
        self.scan_result = scan_result


class StorageError(VaultGateError):
    """The object-storage collaborator failed; message passed through."""


class ObjectNotFound(StorageError):
    """Requested object does not exist in the bucket."""


class RateLimitExceeded(VaultGateError):
    """Client exhausted its quota for the current window."""

    def __init__(self, decision, config):
        super().__init__(config.message)
        self.decision = decision
        self.config = config
