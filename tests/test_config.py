"""Tests for vault configuration loading."""

import json

import pytest

from tam_filesystem.config import load_vault_config
from tam_filesystem.server import build_parser


def test_defaults_without_config_file(tmp_path):
    config = load_vault_config([tmp_path])

    assert config.allowed_directories == (tmp_path.resolve(),)
    assert config.vault_root == tmp_path.resolve()
    assert config.prompts_path == "tasks/prompts"
    assert config.tasks_path == "tasks"
    assert config.templates_path == "utilities/templates"
    assert config.templater_lite is True
    assert config.strict_variables is False
    assert config.prompt_fuzzy_match_threshold == 0.3
    assert config.prompt_content_match_threshold == 0.2
    assert config.prompt_suggestion_threshold == 0.2
    assert config.allowed_extensions == (".md", ".txt", ".json")


def test_requires_at_least_one_directory():
    with pytest.raises(ValueError):
        load_vault_config([])


def test_duplicate_directories_are_collapsed(tmp_path):
    config = load_vault_config([tmp_path, tmp_path / "."])
    assert config.allowed_directories == (tmp_path.resolve(),)


def test_json_config_overrides_defaults(tmp_path):
    (tmp_path / ".tam-filesystem-mcp.json").write_text(
        json.dumps(
            {
                "vault": {"name": "Second Brain"},
                "paths": {"prompts": "prompts", "tasks": "todo"},
                "features": {"templaterLite": False},
                "search": {"maxResults": 5, "promptFuzzyMatchThreshold": 0.5},
                "variables": {"strictValidation": True, "defaultDateFormat": "DD/MM/YYYY"},
            }
        ),
        encoding="utf-8",
    )

    config = load_vault_config([tmp_path])

    assert config.vault_name == "Second Brain"
    assert config.prompts_path == "prompts"
    assert config.tasks_path == "todo"
    assert config.templates_path == "utilities/templates"
    assert config.templater_lite is False
    assert config.max_search_results == 5
    assert config.prompt_fuzzy_match_threshold == 0.5
    assert config.strict_variables is True
    assert config.default_date_format == "DD/MM/YYYY"


def test_yaml_config_in_secondary_directory(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    (second / ".tam-filesystem-mcp.yaml").write_text("paths:\n  templates: tpl\n", encoding="utf-8")

    config = load_vault_config([first, second])

    assert config.templates_path == "tpl"
    assert config.vault_root == first.resolve()


def test_malformed_config_is_ignored(tmp_path):
    (tmp_path / ".tam-filesystem-mcp.json").write_text("{not: [valid", encoding="utf-8")

    config = load_vault_config([tmp_path])

    assert config.prompts_path == "tasks/prompts"


def test_wrongly_typed_values_fall_back_to_defaults(tmp_path):
    (tmp_path / ".tam-filesystem-mcp.json").write_text(
        json.dumps(
            {
                "features": {"templaterLite": "yes"},
                "search": {"maxResults": True, "promptContentMatchThreshold": "high"},
                "paths": ["not", "a", "mapping"],
            }
        ),
        encoding="utf-8",
    )

    config = load_vault_config([tmp_path])

    assert config.templater_lite is True
    assert config.max_search_results == 10
    assert config.prompt_content_match_threshold == 0.2
    assert config.prompts_path == "tasks/prompts"


def test_config_payload_shape(tmp_path):
    payload = load_vault_config([tmp_path]).as_payload()

    assert payload["paths"] == {"prompts": "tasks/prompts", "tasks": "tasks", "templates": "utilities/templates"}
    assert payload["variables"]["strict_validation"] is False


def test_cli_parser_requires_directories():
    parser = build_parser()

    args = parser.parse_args(["/vault", "/shared", "--log-level", "DEBUG"])
    assert args.directories == ["/vault", "/shared"]
    assert args.log_level == "DEBUG"

    with pytest.raises(SystemExit):
        parser.parse_args([])
