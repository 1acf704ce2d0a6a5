# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Upload guard – size / type validation, filename sanitisation and
collision-resistant storage names.

Sanitisation rules
------------------
* path separators and shell-hostile characters  / \\ : * ? " < > |  are removed
* every ``..`` is removed (repeatedly, until none remain)
* leading dots and surrounding whitespace are removed, repeatedly, until
  the name neither starts with a dot nor carries outer whitespace
* an empty result becomes ``file``
* names over 100 characters keep their extension (if it is short) and
  have the stem cut to 90 characters; the rules above are re-applied after
  the cut so truncation can never re-create a ``..`` pair
"""

import math
import re
import time

from core.security import generate_token
from upload.schemas import CandidateFile, FileValidationResult, UploadOptions

MAX_NAME_LENGTH = 100
TRUNCATED_STEM_LENGTH = 90
FALLBACK_NAME = "file"
FALLBACK_EXTENSION = "bin"

_FORBIDDEN = re.compile(r'[/\\:*?"<>|]')
_LEADING_DOTS = re.compile(r"^\.+")
_EXT_UNSAFE = re.compile(r"[^A-Za-z0-9]")


def _strip_dangerous(name: str) -> str:
    name = _FORBIDDEN.sub("", name)
    while ".." in name:
        name = name.replace("..", "")
    # trimming can expose another leading dot (" .env"), so repeat until stable
    previous = None
    while name != previous:
        previous = name
        name = _LEADING_DOTS.sub("", name).strip()
    return name


class FileUploadGuard:
    def validate_file(self, file: CandidateFile, options: UploadOptions) -> FileValidationResult:
        if file.size <= 0:
            return FileValidationResult(is_valid=False, error="File is empty")

        if file.size > options.max_size:
            limit_mb = math.floor(options.max_size / 1024 / 1024 + 0.5)
            return FileValidationResult(
                is_valid=False,
                error=f"File size exceeds limit of {limit_mb}MB",
            )

        if file.content_type not in options.allowed_types:
            return FileValidationResult(
                is_valid=False,
                error=(
                    f"File type {file.content_type} not allowed. "
                    f"Allowed types: {', '.join(options.allowed_types)}"
                ),
            )

        return FileValidationResult(is_valid=True, sanitized_name=self.sanitize_file_name(file.name))

    def sanitize_file_name(self, name: str) -> str:
        if not isinstance(name, str) or not name:
            return FALLBACK_NAME

        sanitized = _strip_dangerous(name) or FALLBACK_NAME

        if len(sanitized) > MAX_NAME_LENGTH:
            stem, dot, ext = sanitized.rpartition(".")
            if dot and stem and 0 < len(ext) < MAX_NAME_LENGTH - TRUNCATED_STEM_LENGTH:
                # a stem ending in "." would form ".." with the re-attached dot
                sanitized = stem[:TRUNCATED_STEM_LENGTH].rstrip(".") + "." + ext
            else:
                sanitized = sanitized[:MAX_NAME_LENGTH]
            sanitized = _strip_dangerous(sanitized) or FALLBACK_NAME

        return sanitized

    def generate_secure_file_name(self, original_name: str, prefix: str = FALLBACK_NAME) -> str:
        """
        ``{prefix}-{stem}-{unix millis}-{16 hex}.{ext}``

        The millisecond timestamp plus 8 random bytes make collisions
        negligible.  Names without a usable extension get ``.bin``.
        """
        if not isinstance(original_name, str) or not original_name:
            original_name = f"{FALLBACK_NAME}.{FALLBACK_EXTENSION}"

        stem, dot, ext = original_name.rpartition(".")
        if not dot:
            stem, ext = original_name, ""
        ext = _EXT_UNSAFE.sub("", ext)[:16] or FALLBACK_EXTENSION

        timestamp = int(time.time() * 1000)
        random_part = generate_token(8)
        return f"{prefix or FALLBACK_NAME}-{self.sanitize_file_name(stem)}-{timestamp}-{random_part}.{ext}"
