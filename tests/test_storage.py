import pytest

from core.errors import ObjectNotFound, StorageError
from storage.local import LocalObjectStorage
from storage.memory import InMemoryObjectStorage


@pytest.fixture(params=["local", "memory"])
def storage(request, tmp_path):
    if request.param == "local":
        return LocalObjectStorage(str(tmp_path), "http://cdn.example.com/files/")
    return InMemoryObjectStorage("http://cdn.example.com/files/")


def test_put_get_delete(storage):
    storage.put("avatars", "a.png", b"\x89PNG", "image/png")
    assert storage.get("avatars", "a.png") == b"\x89PNG"

    storage.delete("avatars", "a.png")
    with pytest.raises(ObjectNotFound):
        storage.get("avatars", "a.png")


def test_put_never_overwrites(storage):
    storage.put("avatars", "a.png", b"first", "image/png")
    with pytest.raises(StorageError, match="already exists"):
        storage.put("avatars", "a.png", b"second", "image/png")
    assert storage.get("avatars", "a.png") == b"first"


def test_delete_missing(storage):
    with pytest.raises(ObjectNotFound):
        storage.delete("avatars", "missing.png")


@pytest.mark.parametrize(
    "bucket, key",
    [
        ("avatars", "../escape.png"),
        ("avatars", "nested/key.png"),
        ("avatars", "back\\slash.png"),
        ("avatars", ".hidden"),
        ("avatars", ""),
        ("..", "a.png"),
    ],
)
def test_unsafe_names_are_rejected(storage, bucket, key):
    with pytest.raises(StorageError, match="Invalid"):
        storage.put(bucket, key, b"x", "image/png")


def test_public_url(storage):
    assert storage.public_url("avatars", "my file.png") == "http://cdn.example.com/files/avatars/my%20file.png"


def test_local_storage_layout(tmp_path):
    storage = LocalObjectStorage(str(tmp_path), "http://localhost/files")
    storage.put("secure-files", "report.pdf", b"%PDF", "application/pdf")
    assert (tmp_path / "secure-files" / "report.pdf").read_bytes() == b"%PDF"
