"""Tests for Pydantic input models.

This test suite validates the input validation logic for MCP tools,
ensuring that:
- Valid inputs are accepted and normalized correctly
- Invalid inputs raise ValidationError with descriptive messages
- Schema generation produces usable JSON schemas for MCP
"""

import pytest
from pydantic import ValidationError

from tam_filesystem.data_models import PromptOptions
from tam_filesystem.models import (
    BasePathInput,
    BaseTaskInput,
    CreateTaskInput,
    GetPromptedInput,
    LinkTaskToPromptInput,
    PromptOptionsInput,
    SearchFilesInput,
    SuggestPromptsInput,
    UpdateTaskProgressInput,
)


class TestBasePathInput:
    """Test suite for BasePathInput model validation."""

    def test_path_is_stripped(self):
        assert BasePathInput(path="  tasks/a.md ").path == "tasks/a.md"

    def test_blank_path_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            BasePathInput(path="   ")
        assert "cannot be empty" in str(exc_info.value)

    def test_nul_byte_rejected(self):
        with pytest.raises(ValidationError):
            BasePathInput(path="a\x00b.md")


class TestBaseTaskInput:
    """Test suite for BaseTaskInput model validation."""

    def test_valid_task_name(self):
        assert BaseTaskInput(task_name="Weekly Review").task_name == "Weekly Review"

    def test_md_extension_is_stripped(self):
        assert BaseTaskInput(task_name="Weekly Review.MD").task_name == "Weekly Review"

    def test_traversal_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            BaseTaskInput(task_name="../secrets")
        assert "'.' or '..'" in str(exc_info.value)

    def test_absolute_name_rejected(self):
        with pytest.raises(ValidationError):
            BaseTaskInput(task_name="/etc/passwd")

    def test_only_extension_rejected(self):
        with pytest.raises(ValidationError):
            BaseTaskInput(task_name=".md")


class TestPromptModels:
    """Test suite for prompt tool input models."""

    def test_defaults(self):
        model = GetPromptedInput(prompt_name=" Reflection ")
        assert model.prompt_name == "Reflection"
        assert model.variables == {}
        assert model.options.to_options() == PromptOptions()

    def test_options_convert_to_prompt_options(self):
        model = GetPromptedInput(
            prompt_name="demo",
            variables={"topic": "ethics"},
            options={"strict_variables": True, "search_paths": [" tasks/prompts ", ""]},
        )
        options = model.options.to_options()
        assert options.strict_variables is True
        assert options.search_paths == ["tasks/prompts"]
        assert options.process_templater is True

    def test_blank_search_paths_become_none(self):
        assert PromptOptionsInput(search_paths=["", "  "]).search_paths is None

    def test_parent_segments_rejected_in_search_paths(self):
        with pytest.raises(ValidationError):
            PromptOptionsInput(search_paths=["../outside"])

    def test_blank_prompt_name_rejected(self):
        with pytest.raises(ValidationError):
            GetPromptedInput(prompt_name="   ")

    def test_variable_names_with_braces_rejected(self):
        with pytest.raises(ValidationError):
            GetPromptedInput(prompt_name="demo", variables={"{{topic}}": "x"})

    def test_suggest_limit_bounds(self):
        assert SuggestPromptsInput(prompt_name="plan", limit=3).limit == 3
        with pytest.raises(ValidationError):
            SuggestPromptsInput(prompt_name="plan", limit=0)

    def test_schema_includes_examples(self):
        schema = GetPromptedInput.model_json_schema()
        assert "prompt_name" in schema["properties"]
        assert schema["examples"][0]["prompt_name"] == "Reflection"


class TestTaskModels:
    """Test suite for task tool input models."""

    def test_create_task_cleans_checklist(self):
        model = CreateTaskInput(name=" Groceries ", checklist=["Milk", "  ", " Eggs "])
        assert model.name == "Groceries"
        assert model.checklist == ["Milk", "Eggs"]
        assert model.metadata == {}

    def test_create_task_rejects_path_separators(self):
        with pytest.raises(ValidationError):
            CreateTaskInput(name="nested/task")

    def test_update_requires_at_least_one_item(self):
        with pytest.raises(ValidationError):
            UpdateTaskProgressInput(task_name="Groceries", updates={})

    def test_update_rejects_blank_keys(self):
        with pytest.raises(ValidationError):
            UpdateTaskProgressInput(task_name="Groceries", updates={" ": True})

    def test_link_defaults_relationship(self):
        model = LinkTaskToPromptInput(task_name="Groceries", prompt_name=" shopping ")
        assert model.relationship == "uses"
        assert model.prompt_name == "shopping"


class TestSearchFilesInput:
    """Test suite for SearchFilesInput model validation."""

    def test_defaults(self):
        model = SearchFilesInput(path=".", pattern="*.md")
        assert model.exclude_patterns == []

    def test_blank_pattern_rejected(self):
        with pytest.raises(ValidationError):
            SearchFilesInput(path=".", pattern="  ")
