"""Base Pydantic models for MCP tool input validation.

This module defines base models that provide common validation patterns
for filesystem and task operations. Other input models inherit from these bases.

Base Models:
- BasePathInput: Common validation for path-based filesystem operations
- BaseTaskInput: Common validation for task identifiers
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class BasePathInput(BaseModel):
    """Base model for filesystem operations that target a single path.

    Paths may be absolute or relative to the vault root (the first allowed
    directory). Containment is enforced later by the filesystem layer.
    """

    path: str = Field(
        min_length=1,
        description=(
            "Absolute path, or a path relative to the vault root. "
            "Examples: 'tasks/prompts/Reflection.md', '/vault/notes'. "
            "Must stay within the allowed directories."
        ),
        examples=["tasks/prompts/Reflection.md", "tasks", "utilities/templates"]
    )

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Validate path format.

        Args:
            v: The path to validate

        Returns:
            The stripped path

        Raises:
            ValueError: If the path is empty or contains NUL bytes
        """
        cleaned = v.strip()

        if not cleaned:
            raise ValueError(
                "Path cannot be empty. "
                "Provide a file or directory path inside an allowed directory."
            )

        if "\x00" in cleaned:
            raise ValueError("Path cannot contain NUL bytes.")

        return cleaned


class BaseTaskInput(BaseModel):
    """Base model for task operations with common validation."""

    task_name: str = Field(
        min_length=1,
        description=(
            "Task name, filename or alias inside the tasks folder. "
            "Examples: 'Weekly Review', 'client-onboarding'. "
            "Matched exactly first, then by alias, fuzzy name and content."
        ),
        examples=["Weekly Review", "client-onboarding"]
    )

    @field_validator('task_name')
    @classmethod
    def validate_task_name(cls, v: str) -> str:
        """Validate task name for safety and format.

        Enforces:
        - Non-empty name
        - No path traversal attempts (.., .)
        - Relative name only (no absolute paths)
        - Strips .md extension if present

        Args:
            v: The task name to validate

        Returns:
            The validated (and potentially normalized) task name

        Raises:
            ValueError: If the name is empty or contains invalid patterns
        """
        cleaned = v.strip()

        if not cleaned:
            raise ValueError(
                "Task name cannot be empty. "
                "Provide a task name like 'Weekly Review'."
            )

        parts = cleaned.split("/")
        if any(part in {".", ".."} for part in parts):
            raise ValueError(
                "Task name cannot contain '.' or '..' path segments. "
                f"Invalid task name: '{cleaned}'"
            )

        if cleaned.startswith("/"):
            raise ValueError(
                "Task name must be relative to the tasks folder. "
                f"Invalid task name: '{cleaned}'"
            )

        if cleaned.lower().endswith(".md"):
            cleaned = cleaned[:-3].strip()

        if not cleaned:
            raise ValueError("Task name cannot be just '.md'. Provide a valid task name.")

        return cleaned
