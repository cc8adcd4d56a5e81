"""
Validation utilities for uploads and request payloads.

Everything here raises `ValidationError` before any row or file is written.
"""
from pathlib import Path
from typing import Any

from .error_handlers import PayloadTooLargeError, ValidationError, get_error_message

# Extension -> the single MIME type accepted for it.
EXPECTED_CONTENT_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".txt": "text/plain",
}
ALLOWED_EXTENSIONS = frozenset(EXPECTED_CONTENT_TYPES)


def sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent directory traversal and other attacks."""
    if not filename:
        raise ValidationError("Filename is required")

    # Keep only the last path component, then neutralize what is left.
    filename = Path(filename.replace("\\", "/")).name
    filename = filename.replace("\x00", "")
    filename = filename.lstrip(".")

    if len(filename) > 255:
        raise ValidationError("Filename too long")

    if not filename:
        raise ValidationError("Invalid filename")

    return filename


def normalize_content_type(content_type: str | None) -> str:
    """'Text/Plain; charset=utf-8' -> 'text/plain'"""
    return (content_type or "").split(";", 1)[0].strip().lower()


def validate_cv_upload(*, filename: str, content_type: str | None, size: int, max_bytes: int) -> tuple[str, str, str]:
    """
    Validate an uploaded CV.

    Returns (sanitized_filename, extension, normalized_content_type).
    """
    safe_name = sanitize_filename(filename)

    if size <= 0:
        raise ValidationError(get_error_message("file_empty"))

    if size > max_bytes:
        raise PayloadTooLargeError(
            get_error_message("file_too_large"),
            details={"size_bytes": size, "max_bytes": max_bytes},
        )

    ext = Path(safe_name).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            get_error_message("invalid_file_type"),
            details={"extension": ext or None, "allowed": sorted(ALLOWED_EXTENSIONS)},
        )

    declared = normalize_content_type(content_type)
    expected = EXPECTED_CONTENT_TYPES[ext]
    if declared != expected:
        raise ValidationError(
            get_error_message("invalid_content_type"),
            details={"content_type": declared or None, "expected": expected},
        )

    return safe_name, ext, declared


def validate_id_list(values: Any, field_name: str) -> list[int]:
    """Positive integer ids, duplicates removed, order preserved."""
    if not values:
        raise ValidationError(get_error_message("no_applicants"), details={"field": field_name})

    out: list[int] = []
    seen: set[int] = set()
    for raw in values:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            raise ValidationError(f"{field_name} must contain integers") from None
        if value < 1:
            raise ValidationError(f"{field_name} must contain positive ids")
        if value in seen:
            continue
        seen.add(value)
        out.append(value)
    return out
