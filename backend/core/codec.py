# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Field-level encryption of structured records (user profile data).

Each sensitive field becomes its own envelope, so fields decrypt
independently.  Decryption is best-effort *per field*: a field that cannot
be decrypted keeps its stored value.  Rows written before encryption was
introduced, or stored in mixed states, therefore still load.
"""

import json
from typing import Any, Iterable, Mapping

from core.errors import DecryptionError
from core.logger import logger
from core.security import EncryptionService

USER_TEXT_FIELDS = ("email", "phone")
USER_JSON_FIELDS = ("personalInfo",)


def canonical_json(value: Any) -> str:
    """Deterministic text form: sorted keys, no whitespace, UTF-8 kept."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class StructuredDataCodec:
    def __init__(
        self,
        encryption: EncryptionService,
        text_fields: Iterable[str] = USER_TEXT_FIELDS,
        json_fields: Iterable[str] = USER_JSON_FIELDS,
    ):
        self._encryption = encryption
        self.text_fields = tuple(text_fields)
        self.json_fields = tuple(json_fields)

    def encrypt_fields(self, record: Mapping[str, Any]) -> dict:
        """
        Return a copy of *record* with every present sensitive field replaced
        by an envelope.  Keys that are not sensitive pass through untouched.
        """
        encrypted = dict(record)
        for name in self.text_fields:
            # empty strings cannot be encrypted and carry nothing to protect
            if record.get(name):
                encrypted[name] = self._encryption.encrypt(record[name])
        for name in self.json_fields:
            if record.get(name) is not None:
                encrypted[name] = self._encryption.encrypt(canonical_json(record[name]))
        return encrypted

    def decrypt_fields(self, record: Mapping[str, Any]) -> dict:
        decrypted = dict(record)
        for name in self.text_fields + self.json_fields:
            value = record.get(name)
            if not isinstance(value, str) or not value:
                continue
            try:
                plaintext = self._encryption.decrypt(value)
                decrypted[name] = json.loads(plaintext) if name in self.json_fields else plaintext
            except (DecryptionError, json.JSONDecodeError) as exc:
                logger.warning(
                    "Field %r could not be decrypted (%s); returning stored value",
                    name,
                    type(exc).__name__,
                )
        return decrypted
