"""Tests for variable declarations, validation and placeholder substitution."""

from datetime import date

import pytest

from tam_filesystem.core.variable_operations import (
    MappingDeclaration,
    NameDeclaration,
    StructuredDeclaration,
    extract_content_variables,
    extract_variable_specs,
    merge_variables_with_defaults,
    read_declarations,
    render_value,
    substitute_variables,
    validate_variables,
)
from tam_filesystem.data_models import VariableSpec


# ==============================================================================
# DECLARATIONS
# ==============================================================================


def test_read_declarations_classifies_each_shape():
    names = read_declarations({"prompt-vars": ["topic", {"name": "client"}]})
    assert names == [NameDeclaration("topic"), StructuredDeclaration({"name": "client"})]

    mapping = read_declarations({"vars": {"topic": {"type": "string"}}})
    assert mapping == [MappingDeclaration("topic", {"type": "string"})]


def test_extract_specs_from_name_list():
    specs = extract_variable_specs({"prompt-vars": ["topic", "client"]})
    assert [spec.name for spec in specs] == ["topic", "client"]
    assert all(spec.type == "string" and spec.required for spec in specs)


def test_extract_specs_from_structured_list():
    specs = extract_variable_specs(
        {
            "variables": [
                {"name": "count", "type": "number", "default": 3},
                {"name": "mode", "options": ["fast", "slow"], "required": False},
                {"type": "string"},
            ]
        }
    )
    assert [spec.name for spec in specs] == ["count", "mode"]
    assert specs[0].type == "number"
    assert specs[0].default == 3
    assert specs[1].options == ("fast", "slow")
    assert specs[1].required is False


def test_extract_specs_from_mapping():
    specs = extract_variable_specs(
        {"vars": {"due": {"type": "date", "description": "Due date"}, "note": None}}
    )
    assert specs[0] == VariableSpec(name="due", type="date", description="Due date")
    assert specs[1] == VariableSpec(name="note")


def test_first_declaration_field_wins():
    specs = extract_variable_specs({"prompt-vars": ["a"], "variables": ["b"]})
    assert [spec.name for spec in specs] == ["a"]


def test_unknown_type_falls_back_to_string_and_duplicates_keep_first():
    specs = extract_variable_specs(
        {"prompt-vars": [{"name": "x", "type": "matrix"}, {"name": "x", "type": "number"}]}
    )
    assert len(specs) == 1
    assert specs[0].type == "string"


def test_missing_or_garbage_declarations_yield_no_specs():
    assert extract_variable_specs({}) == []
    assert extract_variable_specs({"prompt-vars": 42}) == []


def test_extract_content_variables_in_first_seen_order():
    content = "{{b}} and {{a:default}} then {{b}} and {{ c }}"
    assert extract_content_variables(content) == ["b", "a", "c"]


# ==============================================================================
# VALIDATION
# ==============================================================================


def test_required_without_value_or_default_is_missing():
    spec = VariableSpec(name="topic", required=True)
    result = validate_variables([spec], merge_variables_with_defaults({}, [spec]))
    assert result.missing_names == ["topic"]
    assert not result.is_valid


def test_optional_without_value_is_neither_missing_nor_error():
    spec = VariableSpec(name="topic", required=False)
    result = validate_variables([spec], merge_variables_with_defaults({}, [spec]))
    assert result.missing == []
    assert result.errors == []


def test_empty_string_counts_as_missing():
    result = validate_variables([VariableSpec(name="topic")], {"topic": ""})
    assert result.missing_names == ["topic"]


@pytest.mark.parametrize(
    "spec_type,value",
    [
        ("number", "12"),
        ("number", True),
        ("number", float("nan")),
        ("boolean", "yes"),
        ("date", "not-a-date"),
        ("string", 5),
    ],
)
def test_type_mismatches_are_reported(spec_type, value):
    result = validate_variables([VariableSpec(name="v", type=spec_type)], {"v": value})
    assert len(result.errors) == 1
    assert "must be of type" in result.errors[0]


@pytest.mark.parametrize(
    "spec_type,value",
    [
        ("number", 3),
        ("number", 2.5),
        ("boolean", False),
        ("date", "2025-10-27"),
        ("date", "2025-10-27T09:30:00"),
        ("date", date(2025, 10, 27)),
    ],
)
def test_matching_types_pass(spec_type, value):
    result = validate_variables([VariableSpec(name="v", type=spec_type)], {"v": value})
    assert result.is_valid


def test_options_apply_to_caller_values_and_defaults():
    spec = VariableSpec(name="mode", default="medium", options=("fast", "slow"))
    from_default = validate_variables([spec], merge_variables_with_defaults({}, [spec]))
    from_caller = validate_variables([spec], {"mode": "turbo"})
    assert len(from_default.errors) == 1
    assert len(from_caller.errors) == 1
    assert validate_variables([spec], {"mode": "fast"}).is_valid


def test_merge_defaults_never_overrides_caller():
    specs = [VariableSpec(name="a", default="x"), VariableSpec(name="b", default="y"), VariableSpec(name="c")]
    merged = merge_variables_with_defaults({"a": "caller"}, specs)
    assert merged == {"a": "caller", "b": "y"}


# ==============================================================================
# SUBSTITUTION
# ==============================================================================


def test_bound_placeholder_is_replaced():
    result = substitute_variables("Exploring {{topic}}", {"topic": "ethics"})
    assert result.content == "Exploring ethics"
    assert result.used == {"topic": "ethics"}
    assert result.missing == []


def test_unbound_placeholder_is_kept_and_reported():
    result = substitute_variables("Exploring {{topic}}", {})
    assert result.content == "Exploring {{topic}}"
    assert result.missing == ["topic"]


def test_inline_default_is_used_when_unbound():
    result = substitute_variables("{{greeting:Hello}} world", {})
    assert result.content == "Hello world"
    assert result.used == {"greeting": "Hello"}
    assert result.missing == []


def test_binding_equal_to_inline_default_changes_nothing():
    unbound = substitute_variables("{{greeting:Hello}} world", {})
    bound = substitute_variables("{{greeting:Hello}} world", {"greeting": "Hello"})
    assert bound.content == unbound.content
    assert bound.used == unbound.used


def test_missing_names_are_not_duplicated():
    result = substitute_variables("{{x}} {{x}} {{ x }} {{y}}", {})
    assert result.missing == ["x", "y"]


def test_substituted_values_are_not_rescanned():
    result = substitute_variables("{{a}}", {"a": "{{b}}", "b": "nested"})
    assert result.content == "{{b}}"
    assert result.used == {"a": "{{b}}"}


def test_falsy_bindings_are_still_substituted():
    result = substitute_variables("{{n}}|{{flag}}|{{empty}}", {"n": 0, "flag": False, "empty": ""})
    assert result.content == "0|false|"
    assert result.missing == []


def test_render_value_formats():
    assert render_value(None) == ""
    assert render_value(True) == "true"
    assert render_value(date(2025, 1, 2)) == "2025-01-02"
    assert render_value(["a", 1]) == "a, 1"
