# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Per-bucket upload limits.  Unknown buckets get the image-only default."""

from upload.schemas import UploadOptions

MB = 1024 * 1024

IMAGE_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"]

# bucket -> (max size in bytes, allowed MIME types)
BUCKET_PROFILES: dict[str, tuple[int, list[str]]] = {
    "avatars":      (2 * MB, IMAGE_TYPES),
    "casino-logos": (5 * MB, IMAGE_TYPES + ["image/svg+xml"]),
    "post-images":  (10 * MB, IMAGE_TYPES),
    "news-images":  (10 * MB, IMAGE_TYPES),
    "secure-files": (
        50 * MB,
        IMAGE_TYPES
        + ["image/svg+xml"]
        + ["application/pdf", "text/plain", "application/json"]
        + ["application/zip", "application/x-zip-compressed"],
    ),
}

DEFAULT_PROFILE: tuple[int, list[str]] = (5 * MB, IMAGE_TYPES)

# Buckets whose uploads are scanned whatever the caller asked for
ALWAYS_SCAN = {"secure-files"}


def options_for_bucket(
    bucket: str,
    encrypt_file: bool = False,
    virus_scan: bool = False,
    admin_only: bool = False,
) -> UploadOptions:
    max_size, allowed_types = BUCKET_PROFILES.get(bucket, DEFAULT_PROFILE)
    return UploadOptions(
        bucket=bucket,
        max_size=max_size,
        allowed_types=list(allowed_types),
        encrypt_file=encrypt_file,
        virus_scan=virus_scan or bucket in ALWAYS_SCAN,
        admin_only=admin_only,
    )
