"""Filesystem MCP tools.

This module provides MCP tool wrappers for plain file access inside the
allowed directories:
- Read and write text files
- List and search directories
- Inspect file metadata
- List the allowed directories

All tools delegate to tam_filesystem.core.filesystem_operations.VaultFilesystem,
which rejects any path outside the allowed directories.
"""
from __future__ import annotations

import logging
from typing import Any

from mcp.server.fastmcp import Context

from tam_filesystem.server import mcp
from tam_filesystem.session import acquire_services
from tam_filesystem.models import (
    ReadTextFileInput,
    WriteFileInput,
    ListDirectoryInput,
    SearchFilesInput,
    GetFileInfoInput,
    ListAllowedDirectoriesInput,
)

logger = logging.getLogger(__name__)


# ==============================================================================
# READ OPERATIONS
# ==============================================================================

@mcp.tool()
async def read_text_file(
    input: ReadTextFileInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Read a UTF-8 text file, optionally only its first or last lines.

    Args:
        input (ReadTextFileInput): Validated input containing:
            - path (str): Absolute or vault-relative path
            - head (int, optional): Return only the first N lines
            - tail (int, optional): Return only the last N lines

    Returns:
        {
            "path": str,
            "content": str
        }

    Error Handling:
        - ValidationError: Both head and tail given
        - Path outside allowed directories → Access denied
        - File not found → Error with path
    """
    services = acquire_services(ctx)
    target = services.filesystem.validate_path(input.path)
    content = services.filesystem.read_text(target, head=input.head, tail=input.tail)
    return {"path": str(target), "content": content}


@mcp.tool()
async def list_directory(
    input: ListDirectoryInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """List the files and folders directly inside a directory.

    Args:
        input (ListDirectoryInput): Validated input containing:
            - path (str): Directory path

    Returns:
        {
            "path": str,
            "entries": [{"name": str, "type": "file" | "directory"}],
            "listing": str   # "[FILE] name" / "[DIR] name" lines
        }
    """
    services = acquire_services(ctx)
    target = services.filesystem.validate_path(input.path)
    entries = services.filesystem.list_directory(target)
    return {
        "path": str(target),
        "entries": [entry.as_payload() for entry in entries],
        "listing": "\n".join(entry.display() for entry in entries),
    }


@mcp.tool()
async def search_files(
    input: SearchFilesInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Recursively search for files and folders by name.

    Args:
        input (SearchFilesInput): Validated input containing:
            - path (str): Directory to start from
            - pattern (str): Glob ("*.md") or case-insensitive substring ("review")
            - exclude_patterns (list[str]): Globs to skip

    Returns:
        {
            "path": str,
            "pattern": str,
            "matches": [str],   # Absolute paths
            "total": int
        }

    Error Handling:
        - Pattern containing shell metacharacters → unsafe_search_pattern
        - Path is not a directory → Error with path
    """
    services = acquire_services(ctx)
    matches = services.filesystem.search_files(input.path, input.pattern, input.exclude_patterns)
    logger.info("Search for '%s' under '%s' found %d match(es)", input.pattern, input.path, len(matches))
    return {
        "path": input.path,
        "pattern": input.pattern,
        "matches": [str(match) for match in matches],
        "total": len(matches),
    }


@mcp.tool()
async def get_file_info(
    input: GetFileInfoInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Return size, timestamps, type and permissions for a file or folder.

    Args:
        input (GetFileInfoInput): Validated input containing:
            - path (str): File or directory path

    Returns:
        {
            "path": str,
            "size": int,
            "size_display": str,   # "1.50 KB"
            "type": "file" | "directory",
            "modified": str,
            "accessed": str,
            "created": str,        # Only where the platform reports it
            "permissions": str     # e.g. "644"
        }
    """
    services = acquire_services(ctx)
    return services.filesystem.file_info(input.path)


@mcp.tool()
async def list_allowed_directories(
    input: ListAllowedDirectoriesInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """List the directories this server may access and the active configuration.

    The first directory is the vault root; relative paths resolve against it.

    Returns:
        {
            "allowed_directories": [str],
            "config": {...}   # Paths, features, search and variable settings
        }
    """
    services = acquire_services(ctx)
    return {
        "allowed_directories": [str(path) for path in services.config.allowed_directories],
        "config": services.config.as_payload(),
    }


# ==============================================================================
# WRITE OPERATIONS
# ==============================================================================

@mcp.tool()
async def write_file(
    input: WriteFileInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Create or overwrite a text file. Parent folders are created as needed.

    Args:
        input (WriteFileInput): Validated input containing:
            - path (str): Target path
            - content (str): Complete file content

    Returns:
        {
            "path": str,
            "status": "written",
            "size": int   # Bytes written (UTF-8)
        }

    Error Handling:
        - Extension not allowed (.md, .txt, .json by default) → Error with path
        - Path outside allowed directories → Access denied
    """
    services = acquire_services(ctx)
    target = services.filesystem.validate_path(input.path)
    if not services.filesystem.is_allowed_file_type(target):
        raise ValueError(
            f"File type of '{target.name}' is not allowed. "
            f"Allowed extensions: {', '.join(services.config.allowed_extensions)}"
        )
    services.filesystem.write_text(target, input.content)
    logger.info("Wrote file '%s'", target)
    return {"path": str(target), "status": "written", "size": len(input.content.encode("utf-8"))}
