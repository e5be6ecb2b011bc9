"""Pydantic input models for plain filesystem operations.

This module defines input models for filesystem tools:
- Read and write text files
- List and search directories
- Inspect file metadata
- List the allowed directories
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .base import BasePathInput


class ReadTextFileInput(BasePathInput):
    """Input model for read_text_file tool.

    Examples:
        >>> ReadTextFileInput(path="tasks/Weekly Review.md")
        >>> ReadTextFileInput(path="logs/run.txt", tail=20)
    """

    head: Optional[int] = Field(
        None,
        ge=0,
        description="Return only the first N lines."
    )

    tail: Optional[int] = Field(
        None,
        ge=0,
        description="Return only the last N lines."
    )

    @model_validator(mode='after')
    def validate_head_tail(self) -> 'ReadTextFileInput':
        """Ensure head and tail are not combined."""
        if self.head is not None and self.tail is not None:
            raise ValueError("Cannot specify both head and tail. Use one of them.")
        return self


class WriteFileInput(BasePathInput):
    """Input model for write_file tool.

    Examples:
        >>> WriteFileInput(path="notes/idea.md", content="# Idea")
    """

    content: str = Field(
        description="Complete file content. Overwrites any existing file."
    )


class ListDirectoryInput(BasePathInput):
    """Input model for list_directory tool."""
    pass


class SearchFilesInput(BasePathInput):
    """Input model for search_files tool.

    Examples:
        >>> SearchFilesInput(path="tasks", pattern="review")
        >>> SearchFilesInput(path=".", pattern="*.md", exclude_patterns=[".obsidian/*"])
    """

    pattern: str = Field(
        min_length=1,
        description=(
            "Name pattern. Globs ('*.md') when it contains * or ?, "
            "otherwise a case-insensitive substring."
        ),
        examples=["review", "*.md"]
    )

    exclude_patterns: list[str] = Field(
        default_factory=list,
        description="Glob patterns (relative to the search root) to skip.",
        examples=[[".obsidian/*", "archive/*"]]
    )

    @field_validator('pattern')
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """Validate the search pattern is not blank."""
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("Search pattern cannot be empty.")
        return cleaned


class GetFileInfoInput(BasePathInput):
    """Input model for get_file_info tool."""
    pass


class ListAllowedDirectoriesInput(BaseModel):
    """Input model for list_allowed_directories tool (takes no parameters)."""
    pass
