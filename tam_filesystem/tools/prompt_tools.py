"""Prompt discovery MCP tools.

This module provides MCP tool wrappers for prompt operations:
- Resolve a prompt by name with variables (get_prompted)
- Suggest close prompt names

All tools delegate to core operations in tam_filesystem.core.prompt_operations
and tam_filesystem.core.discovery_operations.
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import Context

from tam_filesystem.server import mcp
from tam_filesystem.session import acquire_services
from tam_filesystem.models import GetPromptedInput, SuggestPromptsInput
from tam_filesystem.core.prompt_operations import get_prompted as resolve_prompt
from tam_filesystem.core.discovery_operations import suggest_prompts as rank_prompt_names


# ==============================================================================
# RESOLUTION
# ==============================================================================

# Never raises for "not found" or variable problems; those come back in ``error``.
@mcp.tool()
async def get_prompted(
    input: GetPromptedInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Find a prompt by name and return its content with variables filled in.

    Searches the prompts folder, then the templates folder (or the given
    search_paths). In each folder it tries, in order: exact filename,
    frontmatter alias, fuzzy filename, then title/body content. The first
    match wins.

    The input is validated automatically by Pydantic, providing detailed
    error messages for invalid inputs before any processing occurs.

    Args:
        input (GetPromptedInput): Validated input containing:
            - prompt_name (str): Name, filename or alias
                Examples: "Reflection", "demo", "session opener"
            - variables (dict): Values for {{placeholders}}; override declared defaults
            - options (dict, optional):
                - search_paths (list[str]): Folders to search, in order
                - strict_variables (bool): Fail on missing required variables
                - process_templater (bool): Resolve <% tp.* %> expressions (default True)
                - include_wikilinks (bool): Accepted but not performed

    Returns:
        {
            "resolved": bool,
            "content": str,            # Rendered prompt body
            "confidence": float,       # 1.0 exact, 0.95 alias, lower for fuzzy/content
            "auto_apply_recommended": bool,
            "chosen": {"id", "name", "path", "title", "match", "aliases", "tags", ...},
            "variables_used": {str: Any},  # Name -> value actually substituted
            "missing_variables": [str],
            "missing_variable_specs": [{"name", "type", "required", "description", ...}],
            "candidates": [str],       # "Did you mean" names when not found
            "processing": {"templater_processed", "wikilink_resolution", "variable_interpolation"},
            "error": {"code", "message", "details"} | None
        }

    Examples:
        - Use when: User names a prompt, template or ritual to run
        - Use when: Need the prompt text with the user's values substituted
        - Workflow: get_prompted() → check missing_variables → ask user → get_prompted() again
        - Don't use: Just listing available prompts → Use suggest_prompts()

    Error Handling (returned, not raised):
        - prompt_not_found → candidates lists close names
        - missing_required_variables → strict mode only; details.missing lists names
        - invalid_variable_type → strict mode only; details.errors lists problems
        - path_outside_allowed_directories → a search path escaped the vault
    """
    services = acquire_services(ctx)
    outcome = resolve_prompt(
        input.prompt_name,
        input.variables,
        input.options.to_options(),
        filesystem=services.filesystem,
        config=services.config,
    )
    return outcome.as_payload()


# ==============================================================================
# SUGGESTIONS
# ==============================================================================

@mcp.tool()
async def suggest_prompts(
    input: SuggestPromptsInput,
    ctx: Context | None = None,
) -> dict[str, Any]:
    """Suggest prompt names that closely match a (possibly misspelled) name.

    Scores every prompt filename and alias in the search folders and returns
    the best matches, filenames ranked slightly above aliases.

    Args:
        input (SuggestPromptsInput): Validated input containing:
            - prompt_name (str): Name to match
            - search_paths (list[str], optional): Folders to search
            - limit (int, optional): Maximum suggestions (1-50)

    Returns:
        {
            "query": str,
            "suggestions": [str]   # Best first
        }

    Examples:
        - Use when: get_prompted() found nothing and you want more options
        - Use when: Browsing which prompts exist for a topic
    """
    services = acquire_services(ctx)
    suggestions = rank_prompt_names(
        input.prompt_name,
        services.filesystem,
        services.config,
        input.search_paths,
        input.limit,
    )
    return {"query": input.prompt_name, "suggestions": suggestions}
