# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""In-process object storage.  Development and tests only – nothing persists."""

import threading
from urllib.parse import quote

from core.errors import ObjectNotFound, StorageError
from storage.base import ObjectStorage, check_name


class InMemoryObjectStorage(ObjectStorage):
    def __init__(self, public_base_url: str = "memory://objects"):
        self.public_base_url = public_base_url.rstrip("/")
        # (bucket, key) -> (body, content_type)
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def put(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        ref = (check_name("bucket", bucket), check_name("key", key))
        with self._lock:
            if ref in self.objects:
                raise StorageError("The resource already exists")
            self.objects[ref] = (bytes(data), content_type)

    def get(self, bucket: str, key: str) -> bytes:
        try:
            return self.objects[(bucket, key)][0]
        except KeyError:
            raise ObjectNotFound("Object not found")

    def content_type(self, bucket: str, key: str) -> str:
        try:
            return self.objects[(bucket, key)][1]
        except KeyError:
            raise ObjectNotFound("Object not found")

    def delete(self, bucket: str, key: str) -> None:
        with self._lock:
            if self.objects.pop((bucket, key), None) is None:
                raise ObjectNotFound("Object not found")

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}/{quote(bucket)}/{quote(key)}"
