"""Pydantic input models for MCP tool validation.

Each model represents the input schema for one MCP tool, with field-level
validation and descriptive error messages surfaced to MCP clients.

Architecture:
- base: Base models (BasePathInput, BaseTaskInput) for common validation
- prompt_models: Input models for prompt resolution and suggestions
- task_models: Input models for task note operations
- filesystem_models: Input models for plain filesystem operations

Usage:
    from tam_filesystem.models import GetPromptedInput, CreateTaskInput
    from tam_filesystem.models import ReadTextFileInput, SearchFilesInput
"""

from .base import BasePathInput, BaseTaskInput
from .prompt_models import (
    PromptOptionsInput,
    GetPromptedInput,
    SuggestPromptsInput,
)
from .task_models import (
    CreateTaskInput,
    GetTaskStatusInput,
    UpdateTaskProgressInput,
    LinkTaskToPromptInput,
)
from .filesystem_models import (
    ReadTextFileInput,
    WriteFileInput,
    ListDirectoryInput,
    SearchFilesInput,
    GetFileInfoInput,
    ListAllowedDirectoriesInput,
)

__all__ = [
    # Base models
    "BasePathInput",
    "BaseTaskInput",
    # Prompt models
    "PromptOptionsInput",
    "GetPromptedInput",
    "SuggestPromptsInput",
    # Task models
    "CreateTaskInput",
    "GetTaskStatusInput",
    "UpdateTaskProgressInput",
    "LinkTaskToPromptInput",
    # Filesystem models
    "ReadTextFileInput",
    "WriteFileInput",
    "ListDirectoryInput",
    "SearchFilesInput",
    "GetFileInfoInput",
    "ListAllowedDirectoriesInput",
]
