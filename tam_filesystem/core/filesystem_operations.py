"""Root-scoped filesystem access used by the prompt and task layers."""

from __future__ import annotations

import fnmatch
import logging
import platform
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Sequence

from tam_filesystem.constants import ALLOWED_EXTENSIONS
from tam_filesystem.core.security_operations import (
    get_path_info,
    is_allowed_file_type,
    validate_and_normalize_path,
    validate_search_pattern,
    validate_vault_path,
)
from tam_filesystem.data_models import DirectoryEntry, PathInfo
from tam_filesystem.errors import AccessDeniedError

logger = logging.getLogger(__name__)


def format_size(size: int) -> str:
    """Render a byte count using binary units (``1.5 KB``)."""
    units = ["B", "KB", "MB", "GB", "TB"]
    if size == 0:
        return "0 B"
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    if index == 0:
        return f"{size} B"
    return f"{value:.2f} {units[index]}"


class VaultFilesystem:
    """Read/list/stat/write primitives confined to the allowed directories.

    Every public method validates its path first; callers never touch the
    disk directly.
    """

    def __init__(
        self,
        allowed_directories: Sequence[Path],
        allowed_extensions: Sequence[str] = ALLOWED_EXTENSIONS,
    ) -> None:
        if not allowed_directories:
            raise ValueError("VaultFilesystem requires at least one allowed directory.")
        self.allowed_directories = tuple(Path(directory) for directory in allowed_directories)
        self.allowed_extensions = tuple(allowed_extensions)

    @property
    def vault_root(self) -> Path:
        return self.allowed_directories[0]

    # --------------------------------------------------------------------------
    # Path handling
    # --------------------------------------------------------------------------

    def validate_path(self, path: str | Path) -> Path:
        """Validate an absolute (or vault-relative) path against the allowed roots.

        Raises:
            AccessDeniedError: If the path escapes every allowed directory.
        """
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            return validate_vault_path(str(path), self.vault_root, self.allowed_directories)
        return validate_and_normalize_path(candidate, self.allowed_directories)

    def resolve_vault_path(self, vault_relative_path: str) -> Path:
        return validate_vault_path(vault_relative_path, self.vault_root, self.allowed_directories)

    def join(self, directory: Path, name: str) -> Path:
        """Join ``name`` onto ``directory`` and validate the result."""
        return validate_vault_path(name, directory, self.allowed_directories)

    def is_allowed_file_type(self, path: str | Path) -> bool:
        return is_allowed_file_type(path, self.allowed_extensions)

    # --------------------------------------------------------------------------
    # Primitives
    # --------------------------------------------------------------------------

    def path_info(self, path: str | Path) -> PathInfo:
        return get_path_info(self.validate_path(path))

    def read_text(self, path: str | Path, head: Optional[int] = None, tail: Optional[int] = None) -> str:
        """Read a UTF-8 text file, optionally returning only the first/last lines.

        Raises:
            ValueError: If both ``head`` and ``tail`` are given.
            FileNotFoundError: If the file does not exist.
        """
        if head is not None and tail is not None:
            raise ValueError("Cannot specify both head and tail.")

        target = self.validate_path(path)
        text = target.read_text(encoding="utf-8")
        if head is not None:
            return "\n".join(text.splitlines()[: max(head, 0)])
        if tail is not None:
            lines = text.splitlines()
            return "\n".join(lines[-tail:]) if tail > 0 else ""
        return text

    def write_text(self, path: str | Path, content: str, exclusive: bool = False) -> Path:
        """Write ``content`` to ``path``, creating parent directories.

        With ``exclusive=True`` the file is opened in ``"x"`` mode and an
        existing file raises :class:`FileExistsError`.
        """
        target = self.validate_path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("x" if exclusive else "w", encoding="utf-8") as handle:
            handle.write(content)
        return target

    def list_directory(self, path: str | Path) -> list[DirectoryEntry]:
        """List the entries directly inside ``path`` sorted by name.

        Raises:
            FileNotFoundError: If the directory does not exist.
            NotADirectoryError: If ``path`` is a file.
        """
        target = self.validate_path(path)
        entries = [DirectoryEntry(name=child.name, is_file=child.is_file()) for child in target.iterdir()]
        entries.sort(key=lambda entry: entry.name)
        return entries

    def list_allowed_files(self, directory: Path) -> list[Path]:
        """Return allowed-type files directly inside ``directory``."""
        return [
            self.join(directory, entry.name)
            for entry in self.list_directory(directory)
            if entry.is_file and self.is_allowed_file_type(entry.name)
        ]

    # --------------------------------------------------------------------------
    # Tool-level helpers
    # --------------------------------------------------------------------------

    def search_files(
        self,
        path: str | Path,
        pattern: str,
        exclude_patterns: Optional[Sequence[str]] = None,
    ) -> list[Path]:
        """Recursively find entries whose name matches ``pattern``.

        ``pattern`` is treated as a glob when it contains wildcards and as a
        case-insensitive substring otherwise. ``exclude_patterns`` are globs
        matched against the path relative to the search root.
        """
        validate_search_pattern(pattern)
        root = self.validate_path(path)
        if not root.is_dir():
            raise ValueError(f"Search root '{path}' is not a directory.")

        excludes = list(exclude_patterns or [])
        needle = pattern.lower()
        is_glob = any(char in pattern for char in "*?")
        results: list[Path] = []
        queue: deque[Path] = deque([root])

        while queue:
            current = queue.popleft()
            try:
                children = sorted(current.iterdir())
            except OSError as exc:
                logger.warning("Skipping directory '%s' during search: %s", current, exc)
                continue

            for child in children:
                relative = child.relative_to(root).as_posix()
                if any(
                    fnmatch.fnmatch(relative, exclude) or fnmatch.fnmatch(child.name, exclude)
                    for exclude in excludes
                ):
                    continue
                try:
                    self.validate_path(child)
                except AccessDeniedError:
                    continue

                name = child.name.lower()
                if (is_glob and fnmatch.fnmatch(name, needle)) or (not is_glob and needle in name):
                    results.append(child)
                if child.is_dir() and not child.is_symlink():
                    queue.append(child)

        return results

    def file_info(self, path: str | Path) -> dict[str, Any]:
        """Return stat-derived metadata for a file or directory."""
        target = self.validate_path(path)
        stats = target.stat()
        info: dict[str, Any] = {
            "path": str(target),
            "size": stats.st_size,
            "size_display": format_size(stats.st_size),
            "type": "directory" if target.is_dir() else "file",
            "modified": datetime.fromtimestamp(stats.st_mtime).isoformat(),
            "accessed": datetime.fromtimestamp(stats.st_atime).isoformat(),
            "permissions": oct(stats.st_mode)[-3:],
        }
        if platform.system() in ("Darwin", "Windows"):
            info["created"] = datetime.fromtimestamp(stats.st_ctime).isoformat()
        elif hasattr(stats, "st_birthtime"):
            info["created"] = datetime.fromtimestamp(stats.st_birthtime).isoformat()
        return info
