"""Pydantic input models for task note operations.

This module defines input models for task tools:
- Create a task note with a checklist
- Report checklist progress
- Toggle checklist items
- Link a task to a prompt
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .base import BaseTaskInput


class CreateTaskInput(BaseModel):
    """Input model for create_task tool.

    Examples:
        >>> CreateTaskInput(name="Weekly Review", checklist=["Inbox zero", "Plan week"])
        >>> CreateTaskInput(name="Draft", description="First pass", metadata={"priority": "high"})
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "name": "Weekly Review",
                    "description": "Close the week and plan the next one.",
                    "checklist": ["Inbox zero", "Review calendar", "Plan week"],
                    "metadata": {"priority": "high"},
                }
            ]
        }
    )

    name: str = Field(
        min_length=1,
        description=(
            "Task name. Used as the filename inside the tasks folder; "
            "a ' 2', ' 3', ... suffix is added if the name is taken."
        ),
        examples=["Weekly Review", "Client onboarding"]
    )

    description: str = Field(
        "",
        description="Free-text description placed under the task heading."
    )

    checklist: list[str] = Field(
        default_factory=list,
        description="Checklist item texts, written as open '- [ ]' checkboxes.",
        examples=[["Inbox zero", "Plan week"]]
    )

    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra frontmatter fields for the task note (override template fields)."
    )

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate the task name can be used as a filename."""
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("Task name cannot be empty.")
        if "/" in cleaned or "\\" in cleaned:
            raise ValueError(
                f"Task name '{cleaned}' cannot contain path separators. "
                "Tasks are always created in the configured tasks folder."
            )
        return cleaned

    @field_validator('checklist')
    @classmethod
    def validate_checklist(cls, v: list[str]) -> list[str]:
        """Drop blank checklist entries."""
        return [item.strip() for item in v if item.strip()]


class GetTaskStatusInput(BaseTaskInput):
    """Input model for get_task_status tool.

    Examples:
        >>> GetTaskStatusInput(task_name="Weekly Review")
    """
    pass


class UpdateTaskProgressInput(BaseTaskInput):
    """Input model for update_task_progress tool.

    Examples:
        >>> UpdateTaskProgressInput(task_name="Weekly Review", updates={"1": True})
        >>> UpdateTaskProgressInput(task_name="Weekly Review", updates={"Plan week": False})
    """

    updates: dict[str, bool] = Field(
        min_length=1,
        description=(
            "Maps a 1-based checklist item number ('2') or the item text "
            "(case-insensitive) to its new completion state."
        ),
        examples=[{"1": True, "Plan week": True}]
    )

    @field_validator('updates')
    @classmethod
    def validate_updates(cls, v: dict[str, bool]) -> dict[str, bool]:
        """Reject blank item keys."""
        cleaned = {key.strip(): value for key, value in v.items()}
        if "" in cleaned:
            raise ValueError("Checklist item keys cannot be empty.")
        return cleaned


class LinkTaskToPromptInput(BaseTaskInput):
    """Input model for link_task_to_prompt tool.

    Examples:
        >>> LinkTaskToPromptInput(task_name="Weekly Review", prompt_name="Reflection")
    """

    prompt_name: str = Field(
        min_length=1,
        description="Prompt name, filename or alias to link.",
        examples=["Reflection"]
    )

    relationship: str = Field(
        "uses",
        min_length=1,
        max_length=50,
        description="Relationship label stored on the task (e.g. 'uses', 'generated-by').",
    )

    @field_validator('prompt_name', 'relationship')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Strip whitespace and reject blank values."""
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("Value cannot be blank.")
        return cleaned
