"""Task note MCP tools.

This module provides MCP tool wrappers for task operations:
- Create a task note with a checklist
- Report checklist progress
- Toggle checklist items
- Link tasks and prompts

All tools delegate to core operations in tam_filesystem.core.task_operations.
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import Context

from tam_filesystem.server import mcp
from tam_filesystem.session import acquire_services
from tam_filesystem.models import (
    CreateTaskInput,
    GetTaskStatusInput,
    UpdateTaskProgressInput,
    LinkTaskToPromptInput,
)
from tam_filesystem.core.task_operations import (
    create_task as create_task_note,
    get_task_status as read_task_status,
    update_task_progress as apply_task_updates,
    link_task_to_prompt as link_task_note,
)


# ==============================================================================
# CREATE OPERATIONS
# ==============================================================================

@mcp.tool()
async def create_task(
    input: CreateTaskInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Create a task note with a markdown checklist.

    Uses the "Task" template from the templates folder when present,
    otherwise a default layout (heading, description, checklist). The note
    gets type/status/created frontmatter plus any metadata you pass.

    Args:
        input (CreateTaskInput): Validated input containing:
            - name (str): Task name and filename
            - description (str): Text under the heading
            - checklist (list[str]): Items written as open checkboxes
            - metadata (dict): Extra frontmatter fields

    Returns:
        {
            "task": str,             # Final name (may carry a " 2" suffix)
            "path": str,
            "status": "created",
            "checklist_items": int,
            "template": str | None   # Template path used, if any
        }

    Error Handling:
        - Metadata not serializable as YAML → Error describing the field
        - Tasks folder outside allowed directories → Access denied
    """
    services = acquire_services(ctx)
    return create_task_note(
        input.name,
        input.description,
        input.checklist,
        input.metadata,
        filesystem=services.filesystem,
        config=services.config,
    )


# ==============================================================================
# READ OPERATIONS
# ==============================================================================

@mcp.tool()
async def get_task_status(
    input: GetTaskStatusInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Report checklist progress for a task note.

    Args:
        input (GetTaskStatusInput): Validated input containing:
            - task_name (str): Task name, filename or alias

    Returns:
        {
            "task": str,
            "path": str,
            "match": str,           # How the task was found
            "status": str | None,   # Frontmatter status
            "progress": {
                "completion_percentage": float,
                "total_items": int,
                "completed_items": int,
                "next_actions": [str],   # First three open items
                "blockers": [str],       # Open items mentioning blocked/waiting
                "last_updated": str
            },
            "checklist": [{"text", "completed", "sub_items"}]
        }

    Error Handling:
        - Task not found → Error naming the tasks folder
    """
    services = acquire_services(ctx)
    return read_task_status(
        input.task_name,
        filesystem=services.filesystem,
        config=services.config,
    )


# ==============================================================================
# UPDATE OPERATIONS
# ==============================================================================

@mcp.tool()
async def update_task_progress(
    input: UpdateTaskProgressInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Check or uncheck checklist items in a task note.

    Only checkbox marks change; the rest of the file (frontmatter included)
    is left byte-for-byte as it was.

    Args:
        input (UpdateTaskProgressInput): Validated input containing:
            - task_name (str): Task name, filename or alias
            - updates (dict[str, bool]): Item number ("1"-based) or item text → state
                Example: {"1": true, "Plan week": true}

    Returns:
        {
            "task": str,
            "path": str,
            "status": "updated" | "unchanged",
            "applied": [str],      # Keys that matched an item
            "unmatched": [str],    # Keys that matched nothing
            "progress": {...}      # Same shape as get_task_status
        }
    """
    services = acquire_services(ctx)
    return apply_task_updates(
        input.task_name,
        input.updates,
        filesystem=services.filesystem,
        config=services.config,
    )


@mcp.tool()
async def link_task_to_prompt(
    input: LinkTaskToPromptInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Record that a task uses a prompt, in both notes' frontmatter.

    Args:
        input (LinkTaskToPromptInput): Validated input containing:
            - task_name (str): Task name, filename or alias
            - prompt_name (str): Prompt name, filename or alias
            - relationship (str): Label stored on the task (default "uses")

    Returns:
        {
            "task": str,
            "prompt": str,
            "relationship": str,
            "status": "linked" | "unchanged"
        }

    Error Handling:
        - Task or prompt not found → Error naming which one
    """
    services = acquire_services(ctx)
    return link_task_note(
        input.task_name,
        input.prompt_name,
        input.relationship,
        filesystem=services.filesystem,
        config=services.config,
    )
