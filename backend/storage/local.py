# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Filesystem object storage: <root>/<bucket>/<key>."""

from pathlib import Path
from urllib.parse import quote

from core.errors import ObjectNotFound, StorageError
from core.logger import logger
from storage.base import ObjectStorage, check_name


class LocalObjectStorage(ObjectStorage):
    def __init__(self, root: str, public_base_url: str):
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/")

    def _path(self, bucket: str, key: str) -> Path:
        return self.root / check_name("bucket", bucket) / check_name("key", key)

    def put(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        path = self._path(bucket, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # "xb" fails if the file exists – no silent overwrite
            with open(path, "xb") as fh:
                fh.write(data)
        except FileExistsError:
            raise StorageError("The resource already exists")
        except OSError as exc:
            logger.error("Local storage write failed for %s/%s: %s", bucket, key, exc.strerror)
            raise StorageError(exc.strerror or "write failed") from exc

    def get(self, bucket: str, key: str) -> bytes:
        path = self._path(bucket, key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise ObjectNotFound("Object not found")
        except OSError as exc:
            raise StorageError(exc.strerror or "read failed") from exc

    def delete(self, bucket: str, key: str) -> None:
        path = self._path(bucket, key)
        try:
            path.unlink()
        except FileNotFoundError:
            raise ObjectNotFound("Object not found")
        except OSError as exc:
            raise StorageError(exc.strerror or "delete failed") from exc

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}/{quote(check_name('bucket', bucket))}/{quote(check_name('key', key))}"
