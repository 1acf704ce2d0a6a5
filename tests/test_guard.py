import re

import pytest

from upload.buckets import DEFAULT_PROFILE, MB, options_for_bucket
from upload.guard import FileUploadGuard
from upload.schemas import CandidateFile, UploadOptions


@pytest.fixture
def guard():
    return FileUploadGuard()


def _options(**overrides):
    values = {
        "bucket": "casino-logos",
        "max_size": 5 * MB,
        "allowed_types": ["image/jpeg", "image/png", "image/gif", "image/webp"],
    }
    values.update(overrides)
    return UploadOptions(**values)


@pytest.mark.parametrize(
    "name, content_type, size, is_valid",
    [
        ("test.jpg", "image/jpeg", 1 * MB, True),
        ("logo.png", "image/png", 2 * MB, True),
        ("exact.png", "image/png", 5 * MB, True),
        ("large.jpg", "image/jpeg", 10 * MB, False),
        ("script.js", "application/javascript", 1024, False),
        ("empty.png", "image/png", 0, False),
    ],
)
def test_validation_matrix(guard, name, content_type, size, is_valid):
    result = guard.validate_file(CandidateFile(name, content_type, size), _options())
    assert result.is_valid is is_valid
    assert (result.error is None) is is_valid


def test_size_error_message(guard):
    result = guard.validate_file(CandidateFile("large.jpg", "image/jpeg", 10 * MB), _options())
    assert result.error == "File size exceeds limit of 5MB"


def test_type_error_message(guard):
    result = guard.validate_file(CandidateFile("x.js", "application/javascript", 10), _options())
    assert result.error == "File type application/javascript not allowed. Allowed types: image/jpeg, image/png, image/gif, image/webp"


def test_valid_file_carries_sanitized_name(guard):
    result = guard.validate_file(CandidateFile("../my logo.png", "image/png", 10), _options())
    assert result.sanitized_name == "my logo.png"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("../../../etc/passwd", "etcpasswd"),
        ("....hidden.jpg", "hidden.jpg"),
        ("a.../b.png", "a.b.png"),
        ('in<va>lid:na"me|?.png', "invalidname.png"),
        ("  spaced.png  ", "spaced.png"),
        ("", "file"),
        ("../..", "file"),
        (" .env", "env"),
        (". .", "file"),
        (" . .. .hidden.png ", "hidden.png"),
        ("normal-name_1.png", "normal-name_1.png"),
    ],
)
def test_sanitize_file_name(guard, raw, expected):
    assert guard.sanitize_file_name(raw) == expected


def test_long_names_keep_their_extension(guard):
    sanitized = guard.sanitize_file_name("a" * 146 + ".jpg")
    assert sanitized == "a" * 90 + ".jpg"
    assert len(sanitized) <= 100


def test_truncation_never_creates_double_dots(guard):
    # the cut lands right after a dot in the stem
    sanitized = guard.sanitize_file_name("a" * 89 + "." + "b" * 56 + ".png")
    assert ".." not in sanitized
    assert sanitized == "a" * 89 + ".png"


def test_long_name_with_long_extension_is_cut(guard):
    sanitized = guard.sanitize_file_name("a" * 20 + "." + "b" * 130)
    assert len(sanitized) == 100


def test_sanitized_names_are_safe(guard):
    for raw in ("../../x", "..\\..\\y", "/abs/path.png", ".env", " .env", ". . .", "a" * 300):
        sanitized = guard.sanitize_file_name(raw)
        assert sanitized
        assert "/" not in sanitized and "\\" not in sanitized
        assert ".." not in sanitized
        assert not sanitized.startswith(".")
        assert len(sanitized) <= 100


def test_secure_file_name_format(guard):
    name = guard.generate_secure_file_name("logo.png", "casino-logos")
    assert re.fullmatch(r"casino-logos-logo-\d{13}-[0-9a-f]{16}\.png", name)


def test_secure_file_names_are_unique(guard):
    names = {guard.generate_secure_file_name("logo.png", "avatars") for _ in range(20)}
    assert len(names) == 20


def test_secure_file_name_defaults(guard):
    assert re.fullmatch(r"file-README-\d{13}-[0-9a-f]{16}\.bin", guard.generate_secure_file_name("README"))
    assert guard.generate_secure_file_name("photo.j p-g").endswith(".jpg")


def test_bucket_options():
    logos = options_for_bucket("casino-logos")
    assert logos.max_size == 5 * MB
    assert "image/svg+xml" in logos.allowed_types
    assert logos.virus_scan is False

    avatars = options_for_bucket("avatars", encrypt_file=True, virus_scan=True, admin_only=True)
    assert avatars.max_size == 2 * MB
    assert avatars.encrypt_file and avatars.virus_scan and avatars.admin_only


def test_secure_files_are_always_scanned():
    options = options_for_bucket("secure-files", virus_scan=False)
    assert options.virus_scan is True
    assert "application/pdf" in options.allowed_types
    assert options.max_size == 50 * MB


def test_unknown_bucket_gets_default_profile():
    options = options_for_bucket("misc")
    assert (options.max_size, options.allowed_types) == DEFAULT_PROFILE


def test_dot_only_name_falls_back(guard):
    result = guard.validate_file(CandidateFile(". .", "image/png", 10), _options())
    assert result.is_valid is True
    assert result.sanitized_name == "file"
