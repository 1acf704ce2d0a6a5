import pytest

from core.errors import DECRYPTION_FAILED, InvalidInput, StorageError
from storage.memory import InMemoryObjectStorage
from upload.buckets import MB, options_for_bucket
from upload.pipeline import ENCRYPTED_CONTENT_TYPE, ENCRYPTED_PREFIX, SecureUploadPipeline
from upload.scanner import SignatureThreatScanner
from upload.schemas import CandidateFile

PNG_HEADER = b"\x89PNG\r\n\x1a\n"


class _FullDisk(InMemoryObjectStorage):
    def put(self, bucket, key, data, content_type):
        raise StorageError("disk full")


@pytest.fixture
def storage():
    return InMemoryObjectStorage()


@pytest.fixture
def pipeline(encryption, storage):
    return SecureUploadPipeline(encryption, storage, scanner=SignatureThreatScanner(delay_seconds=0))


def _png(size=2 * MB, name="logo.png"):
    return CandidateFile.from_bytes(name, "image/png", PNG_HEADER + bytes(size - len(PNG_HEADER)))


def test_encrypted_upload_round_trip(pipeline, storage):
    file = _png()
    options = options_for_bucket("casino-logos", encrypt_file=True, virus_scan=True)

    outcome = pipeline.upload(file, options)

    assert outcome.success is True
    assert outcome.encrypted_file_name == ENCRYPTED_PREFIX + outcome.file_name
    assert outcome.size == 2 * MB
    assert outcome.type == "image/png"
    assert outcome.scan_result.is_clean is True
    assert outcome.url.endswith("/casino-logos/" + outcome.encrypted_file_name)

    downloaded = pipeline.download(outcome.encrypted_file_name, "casino-logos", is_encrypted=True)
    assert downloaded.success is True
    assert downloaded.data == file.data


def test_encrypted_object_is_stored_as_envelope(pipeline, storage):
    outcome = pipeline.upload(_png(size=1024), options_for_bucket("avatars", encrypt_file=True))

    key = outcome.encrypted_file_name
    body = storage.get("avatars", key)
    assert storage.content_type("avatars", key) == ENCRYPTED_CONTENT_TYPE
    assert PNG_HEADER not in body

    iv, tag, ciphertext = body.decode("utf-8").split(":")
    assert len(iv) == 32 and len(tag) == 32 and ciphertext


def test_plain_upload_is_stored_verbatim(pipeline, storage):
    file = _png(size=4096)
    outcome = pipeline.upload(file, options_for_bucket("post-images"))

    assert outcome.success is True
    assert outcome.encrypted_file_name is None
    assert outcome.scan_result is None
    assert storage.get("post-images", outcome.file_name) == file.data
    assert storage.content_type("post-images", outcome.file_name) == "image/png"


def test_validation_failure_stores_nothing(pipeline, storage):
    outcome = pipeline.upload(_png(size=10 * MB), options_for_bucket("casino-logos"))

    assert outcome.success is False
    assert outcome.error == "File size exceeds limit of 5MB"
    assert storage.objects == {}


def test_disallowed_type_is_rejected(pipeline, storage):
    file = CandidateFile.from_bytes("payload.js", "application/javascript", b"alert(1)")
    outcome = pipeline.upload(file, options_for_bucket("casino-logos"))

    assert outcome.success is False
    assert outcome.error.startswith("File type application/javascript not allowed")
    assert storage.objects == {}


def test_scan_failure_reports_threats(pipeline, storage):
    file = CandidateFile.from_bytes("logo.png", "image/png", PNG_HEADER + b" malware detected ")
    outcome = pipeline.upload(file, options_for_bucket("casino-logos", virus_scan=True))

    assert outcome.success is False
    assert outcome.error == "File failed virus scan: malware"
    assert outcome.scan_result.is_clean is False
    assert outcome.scan_result.threats == ["malware"]
    assert storage.objects == {}


def test_secure_files_bucket_is_scanned_without_asking(pipeline):
    file = CandidateFile.from_bytes("notes.txt", "text/plain", b"trojan horse")
    outcome = pipeline.upload(file, options_for_bucket("secure-files"))
    assert outcome.success is False
    assert outcome.scan_result.threats == ["trojan"]


def test_storage_failure_becomes_outcome(encryption):
    pipeline = SecureUploadPipeline(encryption, _FullDisk(), scanner=SignatureThreatScanner(delay_seconds=0))
    outcome = pipeline.upload(_png(size=1024), options_for_bucket("casino-logos"))

    assert outcome.success is False
    assert outcome.error == "Upload failed: disk full"


def test_wrong_file_type_is_a_caller_error(pipeline):
    with pytest.raises(InvalidInput):
        pipeline.upload({"name": "logo.png"}, options_for_bucket("casino-logos"))


def test_download_missing_object(pipeline):
    outcome = pipeline.download("nope.png", "casino-logos")
    assert outcome.success is False
    assert outcome.error == "Download failed: Object not found"


def test_download_corrupted_envelope(pipeline, storage):
    storage.put("avatars", "encrypted-broken.png", b"not-an-envelope", ENCRYPTED_CONTENT_TYPE)
    outcome = pipeline.download("encrypted-broken.png", "avatars", is_encrypted=True)
    assert outcome.success is False
    assert outcome.error == DECRYPTION_FAILED


def test_download_non_utf8_body_flagged_encrypted(pipeline, storage):
    storage.put("avatars", "encrypted-raw.png", b"\xff\xfe\xfd", ENCRYPTED_CONTENT_TYPE)
    outcome = pipeline.download("encrypted-raw.png", "avatars", is_encrypted=True)
    assert outcome.error == DECRYPTION_FAILED


def test_delete(pipeline, storage):
    outcome = pipeline.upload(_png(size=1024), options_for_bucket("news-images"))

    assert pipeline.delete(outcome.file_name, "news-images").success is True
    assert storage.objects == {}

    again = pipeline.delete(outcome.file_name, "news-images")
    assert again.success is False
    assert again.error == "Delete failed: Object not found"


def test_file_body_helpers_round_trip(pipeline):
    data = bytes(range(256)) * 4
    assert pipeline.decrypt_file_bytes(pipeline.encrypt_file_bytes(data)) == data
