"""Path containment, filename sanitizing and request throttling."""

from __future__ import annotations

import os
import re
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from tam_filesystem.constants import (
    ALLOWED_EXTENSIONS,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
)
from tam_filesystem.data_models import PathInfo
from tam_filesystem.errors import AccessDeniedError, SecurityError

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')
_UNSAFE_PATTERN_CHARS = re.compile(r"[;&|`$(){}\[\]]")


# ==============================================================================
# PATH VALIDATION
# ==============================================================================


def validate_and_normalize_path(input_path: str | Path, allowed_directories: Sequence[Path]) -> Path:
    """Normalize ``input_path`` and ensure it lies inside an allowed directory.

    Args:
        input_path: Absolute path, or a path relative to the working directory.
        allowed_directories: Directories the server may access.

    Returns:
        The normalized absolute :class:`Path`.

    Raises:
        AccessDeniedError: If the normalized path escapes every allowed directory.
    """
    normalized = Path(os.path.normpath(Path(input_path).expanduser().absolute())).resolve(strict=False)
    for allowed in allowed_directories:
        root = Path(allowed).resolve(strict=False)
        if normalized == root or normalized.is_relative_to(root):
            return normalized

    raise AccessDeniedError(
        f"Path '{input_path}' is outside allowed directories: "
        + ", ".join(str(directory) for directory in allowed_directories),
        {"path": str(input_path)},
    )


def validate_vault_path(
    vault_relative_path: str,
    vault_root: Path,
    allowed_directories: Sequence[Path],
) -> Path:
    """Join a vault-relative path onto ``vault_root`` and validate the result."""
    clean = vault_relative_path.lstrip("/")
    return validate_and_normalize_path(vault_root / clean, allowed_directories)


def get_path_info(path: Path) -> PathInfo:
    """Return existence and type information for ``path``.

    Missing paths produce ``PathInfo(exists=False)``; any other ``OSError``
    propagates.
    """
    try:
        stats = path.stat()
    except (FileNotFoundError, NotADirectoryError):
        return PathInfo(exists=False)

    return PathInfo(
        exists=True,
        is_file=path.is_file(),
        is_directory=path.is_dir(),
        size=stats.st_size,
        modified=datetime.fromtimestamp(stats.st_mtime),
    )


def is_allowed_file_type(file_path: str | Path, allowed_extensions: Sequence[str] = ALLOWED_EXTENSIONS) -> bool:
    """Return True when the file extension (case-insensitive) is allowed."""
    suffix = Path(file_path).suffix.lower()
    return bool(suffix) and suffix in {extension.lower() for extension in allowed_extensions}


# ==============================================================================
# SANITIZING
# ==============================================================================


def sanitize_filename(filename: str) -> str:
    """Replace characters that are invalid in filenames and trim stray dots."""
    cleaned = _INVALID_FILENAME_CHARS.sub("_", filename)
    cleaned = re.sub(r"\.+", ".", cleaned)
    cleaned = cleaned.strip().strip(".").strip()
    return cleaned or "unnamed"


def create_safe_filename(base_name: str, extension: str = ".md") -> str:
    ext = extension if extension.startswith(".") else f".{extension}"
    return f"{sanitize_filename(base_name)}{ext}"


def validate_search_pattern(pattern: str) -> str:
    """Reject search patterns containing shell metacharacters.

    Raises:
        SecurityError: With code ``unsafe_search_pattern``.
    """
    if _UNSAFE_PATTERN_CHARS.search(pattern):
        raise SecurityError(
            "unsafe_search_pattern",
            f"Search pattern contains unsafe characters: '{pattern}'",
        )
    return pattern


# ==============================================================================
# RATE LIMITING
# ==============================================================================


class RateLimiter:
    """Sliding-window request counter keyed by caller identifier.

    Instances are owned by :class:`tam_filesystem.session.VaultServices`; there
    is no shared module-level limiter.
    """

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._requests: dict[str, list[float]] = {}

    def is_allowed(self, identifier: str, now: Optional[float] = None) -> bool:
        current = time.monotonic() if now is None else now
        recent = [
            stamp
            for stamp in self._requests.get(identifier, [])
            if current - stamp < self.window_seconds
        ]
        if len(recent) >= self.max_requests:
            self._requests[identifier] = recent
            return False

        recent.append(current)
        self._requests[identifier] = recent
        return True

    def check(self, identifier: str) -> None:
        """Raise :class:`SecurityError` (``rate_limited``) when over the limit."""
        if not self.is_allowed(identifier):
            raise SecurityError(
                "rate_limited",
                f"Too many requests for '{identifier}'; limit is {self.max_requests} "
                f"per {self.window_seconds:g}s.",
            )

    def reset(self, identifier: str) -> None:
        self._requests.pop(identifier, None)
