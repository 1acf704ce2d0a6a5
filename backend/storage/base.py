# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Object-storage interface used by the upload pipeline.

Implementations raise ``StorageError`` (or ``ObjectNotFound``) and never
return error values; the pipeline turns those into failure outcomes.
"""

import re
from abc import ABC, abstractmethod

from core.errors import StorageError

_UNSAFE = re.compile(r"[/\\\x00]|\.\.")


def check_name(kind: str, name: str) -> str:
    """Reject bucket / key names that could escape their directory."""
    if not isinstance(name, str) or not name or name.startswith(".") or _UNSAFE.search(name):
        raise StorageError(f"Invalid {kind} name")
    return name


class ObjectStorage(ABC):
    """Bucket + key addressed blob store."""

    @abstractmethod
    def put(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        """Store *data*.  Never overwrites: an existing key is an error."""

    @abstractmethod
    def get(self, bucket: str, key: str) -> bytes:
        """Return the object body.  ``ObjectNotFound`` if missing."""

    @abstractmethod
    def delete(self, bucket: str, key: str) -> None:
        """Remove the object.  ``ObjectNotFound`` if missing."""

    @abstractmethod
    def public_url(self, bucket: str, key: str) -> str:
        ...
