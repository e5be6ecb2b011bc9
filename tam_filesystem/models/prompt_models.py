"""Pydantic input models for prompt discovery and resolution.

This module defines input models for prompt tools:
- Resolve a prompt with variables (get_prompted)
- Suggest alternative prompt names
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tam_filesystem.data_models import PromptOptions


def _clean_search_paths(v: Optional[list[str]]) -> Optional[list[str]]:
    if v is None:
        return None

    cleaned = [path.strip() for path in v if path and path.strip()]
    for path in cleaned:
        if any(part == ".." for part in path.replace("\\", "/").split("/")):
            raise ValueError(
                f"Search path '{path}' cannot contain '..' segments. "
                "Use paths inside the vault such as 'tasks/prompts'."
            )
    return cleaned or None


def _clean_prompt_name(v: str) -> str:
    cleaned = v.strip()
    if not cleaned:
        raise ValueError(
            "Prompt name cannot be empty. "
            "Provide a prompt filename, alias or partial name."
        )
    return cleaned


class PromptOptionsInput(BaseModel):
    """Options controlling how a prompt is resolved."""

    include_wikilinks: bool = Field(
        False,
        description="Reserved. Wikilink resolution is not performed; the flag is accepted for compatibility."
    )

    process_templater: bool = Field(
        True,
        description=(
            "Resolve Templater expressions such as <% tp.date.now() %> before "
            "{{variable}} substitution (requires templater-lite in the vault config)."
        )
    )

    search_paths: Optional[list[str]] = Field(
        None,
        description=(
            "Folders to search, in order (vault-relative). "
            "Default: the configured prompts folder, then the templates folder."
        ),
        examples=[["tasks/prompts"], ["utilities/templates", "tasks/prompts"]]
    )

    strict_variables: Optional[bool] = Field(
        None,
        description=(
            "If True, missing required variables fail the call with "
            "'missing_required_variables'. Default: the vault config setting."
        )
    )

    @field_validator('search_paths')
    @classmethod
    def validate_search_paths(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        """Strip blank entries and reject parent-directory segments."""
        return _clean_search_paths(v)

    def to_options(self) -> PromptOptions:
        return PromptOptions(
            include_wikilinks=self.include_wikilinks,
            process_templater=self.process_templater,
            search_paths=self.search_paths,
            strict_variables=self.strict_variables,
        )


class GetPromptedInput(BaseModel):
    """Input model for get_prompted tool.

    Discovers a prompt by name, alias, fuzzy filename or content, then fills
    its {{variables}} from the supplied values and declared defaults.

    Examples:
        >>> GetPromptedInput(prompt_name="Reflection", variables={"topic": "ethics"})
        >>> GetPromptedInput(prompt_name="demo", options={"strict_variables": True})
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"prompt_name": "Reflection", "variables": {"topic": "ethics"}},
                {
                    "prompt_name": "session opener",
                    "variables": {},
                    "options": {"strict_variables": True, "search_paths": ["tasks/prompts"]},
                },
            ]
        }
    )

    prompt_name: str = Field(
        min_length=1,
        description=(
            "Name or partial name of the prompt to load. "
            "Matches filenames first, then frontmatter aliases, fuzzy names and content."
        ),
        examples=["Reflection", "demo", "session opener"]
    )

    variables: dict[str, Any] = Field(
        default_factory=dict,
        description=(
            "Values for {{variable}} placeholders. "
            "These take precedence over defaults declared in the prompt's frontmatter."
        ),
        examples=[{"topic": "ethics", "client": "A."}]
    )

    options: PromptOptionsInput = Field(
        default_factory=PromptOptionsInput,
        description="Resolution options (search paths, strictness, templater processing)."
    )

    @field_validator('prompt_name')
    @classmethod
    def validate_prompt_name(cls, v: str) -> str:
        """Validate prompt name is not blank."""
        return _clean_prompt_name(v)

    @field_validator('variables')
    @classmethod
    def validate_variables(cls, v: dict[str, Any]) -> dict[str, Any]:
        """Validate variable names are non-empty and contain no braces."""
        for name in v:
            if not name.strip():
                raise ValueError("Variable names cannot be empty.")
            if any(char in name for char in "{}:"):
                raise ValueError(
                    f"Variable name '{name}' cannot contain '{{', '}}' or ':'. "
                    "Use the bare placeholder name, e.g. 'topic' for {{topic}}."
                )
        return {name.strip(): value for name, value in v.items()}


class SuggestPromptsInput(BaseModel):
    """Input model for suggest_prompts tool.

    Examples:
        >>> SuggestPromptsInput(prompt_name="reflect")
        >>> SuggestPromptsInput(prompt_name="plan", limit=3)
    """

    prompt_name: str = Field(
        min_length=1,
        description="Name to find close matches for.",
        examples=["reflect", "plan"]
    )

    search_paths: Optional[list[str]] = Field(
        None,
        description="Folders to search (vault-relative). Default: prompts and templates folders."
    )

    limit: Optional[int] = Field(
        None,
        ge=1,
        le=50,
        description="Maximum number of suggestions. Default: the configured max search results."
    )

    @field_validator('prompt_name')
    @classmethod
    def validate_prompt_name(cls, v: str) -> str:
        """Validate prompt name is not blank."""
        return _clean_prompt_name(v)

    @field_validator('search_paths')
    @classmethod
    def validate_search_paths(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        """Strip blank entries and reject parent-directory segments."""
        return _clean_search_paths(v)
