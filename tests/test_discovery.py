"""Tests for the exact → alias → fuzzy → content discovery cascade."""

import pytest

from tam_filesystem.core.discovery_operations import (
    content_score,
    discover_prompt,
    find_by_alias,
    find_exact_match,
    fuzzy_score,
    suggest_prompts,
)
from tam_filesystem.data_models import VaultConfig
from tam_filesystem.errors import AccessDeniedError, PromptError


# ==============================================================================
# SCORING
# ==============================================================================


@pytest.mark.parametrize("query,candidate", [("plan", "plan"), ("Plan", "plan.md"), (" REFLECTION.txt ", "reflection")])
def test_fuzzy_score_of_same_name_is_one(query, candidate):
    assert fuzzy_score(query, candidate) == 1.0


def test_fuzzy_score_prefers_word_overlap_over_weak_containment():
    # containment alone would be 0.8 * 4 / 12
    assert fuzzy_score("plan", "plan-outline") == pytest.approx(0.6)


def test_fuzzy_score_containment():
    assert fuzzy_score("reflection", "reflect") == pytest.approx(0.8 * 7 / 10)


def test_fuzzy_score_character_overlap_fallback():
    assert fuzzy_score("abcd", "dcba") == pytest.approx(0.5)
    assert fuzzy_score("abc", "xyz") == 0.0
    assert fuzzy_score("", "anything") == 0.0


def test_content_score_combines_title_and_body():
    assert content_score("focus", "Deep Focus", "") == pytest.approx(0.8 * 5 / 10)
    assert content_score("focus", None, "focus focus focus") == pytest.approx(0.3)
    assert content_score("focus", None, "focus " * 10) == pytest.approx(0.5)


# ==============================================================================
# CASCADE
# ==============================================================================


def test_exact_match_wins_over_better_named_fuzzy_candidate(filesystem, config, write_note, vault):
    write_note("tasks/prompts/plan.md", "Plan body")
    write_note("tasks/prompts/plan-outline.md", "Outline body")

    result = discover_prompt("plan", filesystem, config)

    assert result.match == "exact"
    assert result.path == vault / "tasks" / "prompts" / "plan.md"
    assert result.score == 1.0


def test_exact_match_tries_lowercase_and_txt_variants(filesystem, config, write_note, vault):
    write_note("tasks/prompts/standup.txt", "Standup body")

    result = find_exact_match(filesystem, vault / "tasks" / "prompts", "STANDUP")

    assert result is not None
    assert result.path.name == "standup.txt"


def test_alias_match_finds_file_by_frontmatter_alias(filesystem, config, write_note, vault):
    write_note(
        "tasks/prompts/philosophical-session.md",
        "---\naliases: [demo, philosophy]\n---\nLet us think.",
    )

    result = discover_prompt("demo", filesystem, config)

    assert result.match == "alias"
    assert result.path == vault / "tasks" / "prompts" / "philosophical-session.md"
    assert result.score == 0.95


def test_alias_match_is_case_insensitive(filesystem, write_note, vault):
    write_note("tasks/prompts/session.md", "---\naliases: Morning Pages\n---\nWrite.")

    result = find_by_alias(filesystem, vault / "tasks" / "prompts", "morning pages")

    assert result is not None
    assert result.path.name == "session.md"


def test_fuzzy_stage_scores_partial_names(filesystem, config, write_note):
    write_note("tasks/prompts/weekly-review.md", "Review the week.")

    result = discover_prompt("weekly", filesystem, config)

    assert result.match == "fuzzy"
    assert result.path.name == "weekly-review.md"
    assert result.score == pytest.approx(0.6)


def test_content_stage_matches_body_text(filesystem, config, write_note):
    write_note("tasks/prompts/zz.md", "mindfulness practice, mindfulness log, mindfulness notes")

    result = discover_prompt("mindfulness", filesystem, config)

    assert result.match == "content"
    assert result.path.name == "zz.md"
    assert result.score == pytest.approx(0.3)


def test_first_directory_short_circuits_later_directories(filesystem, config, write_note):
    write_note("tasks/prompts/morning.md", "---\naliases: [daily]\n---\nMorning prompt.")
    write_note("utilities/templates/daily.md", "Daily template.")

    result = discover_prompt("daily", filesystem, config)

    assert result.match == "alias"
    assert result.path.name == "morning.md"


def test_templates_folder_is_searched_after_prompts(filesystem, config, write_note):
    write_note("utilities/templates/Daily Note.md", "Template body")

    result = discover_prompt("Daily Note", filesystem, config)

    assert result.match == "exact"
    assert result.path.parent.name == "templates"


def test_explicit_search_paths_replace_defaults(filesystem, config, write_note):
    write_note("tasks/prompts/focus.md", "prompt")
    write_note("library/focus.md", "library copy")

    result = discover_prompt("focus", filesystem, config, ["library"])

    assert result.path.parent.name == "library"


def test_missing_directory_is_skipped(filesystem, config, write_note):
    write_note("tasks/prompts/focus.md", "prompt")

    result = discover_prompt("focus", filesystem, config, ["does/not/exist", "tasks/prompts"])

    assert result.path.name == "focus.md"


def test_not_found_raises_prompt_error_with_search_paths(filesystem, config):
    with pytest.raises(PromptError) as excinfo:
        discover_prompt("nothing-here", filesystem, config)

    assert excinfo.value.code == "prompt_not_found"
    assert excinfo.value.details == {"search_paths": ["tasks/prompts", "utilities/templates"]}


def test_search_path_outside_vault_is_denied(filesystem, config):
    with pytest.raises(AccessDeniedError):
        discover_prompt("anything", filesystem, config, ["../outside"])


def test_thresholds_are_configurable(filesystem, vault, write_note):
    write_note("tasks/prompts/weekly-review.md", "Review the week.")
    strict = VaultConfig(allowed_directories=(vault,), prompt_fuzzy_match_threshold=0.7)

    with pytest.raises(PromptError):
        discover_prompt("weekly", filesystem, strict)


# ==============================================================================
# SUGGESTIONS
# ==============================================================================


def test_suggestions_rank_filenames_and_weighted_aliases(filesystem, config, write_note):
    write_note("tasks/prompts/reflection.md", "Body")
    write_note("tasks/prompts/reflect-daily.md", "Body")
    write_note("tasks/prompts/zzz.md", "---\naliases: [reflect]\n---\nBody")

    suggestions = suggest_prompts("reflect", filesystem, config)

    assert suggestions == ["reflect", "reflect-daily", "reflection"]


def test_suggestions_respect_limit(filesystem, config, write_note):
    write_note("tasks/prompts/reflection.md", "Body")
    write_note("tasks/prompts/reflect-daily.md", "Body")

    assert suggest_prompts("reflect", filesystem, config, limit=1) == ["reflect-daily"]


def test_suggestions_skip_paths_outside_vault(filesystem, config, write_note):
    write_note("tasks/prompts/reflection.md", "Body")

    suggestions = suggest_prompts("reflection", filesystem, config, ["../outside", "tasks/prompts"])

    assert suggestions == ["reflection"]


def test_legacy_fuzzy_threshold_does_not_affect_discovery(filesystem, vault, write_note):
    write_note("tasks/prompts/weekly-review.md", "Review the week.")
    legacy = VaultConfig(allowed_directories=(vault,), fuzzy_threshold=0.99)

    result = discover_prompt("weekly", filesystem, legacy)

    assert result.match == "fuzzy"
    assert result.path.name == "weekly-review.md"


# ==============================================================================
# UNREADABLE FILES AND DIRECTORIES
# ==============================================================================


def test_alias_stage_skips_undecodable_sibling(filesystem, config, write_note, vault):
    (vault / "tasks" / "prompts" / "aaa.md").write_bytes(b"\xff\xfe\x00bad")
    write_note("tasks/prompts/bbb.md", "---\naliases: [demo]\n---\nDemo body")

    result = discover_prompt("demo", filesystem, config)

    assert result.match == "alias"
    assert result.path.name == "bbb.md"


def test_content_stage_skips_undecodable_sibling(filesystem, config, write_note, vault):
    (vault / "tasks" / "prompts" / "qq.md").write_bytes(b"\xff\xfe\x00bad")
    write_note("tasks/prompts/zz.md", "mindfulness practice, mindfulness log, mindfulness notes")

    result = discover_prompt("mindfulness", filesystem, config)

    assert result.match == "content"
    assert result.path.name == "zz.md"


def test_unlistable_directory_falls_through_to_next_path(filesystem, config, write_note, vault, monkeypatch):
    locked = vault / "locked"
    locked.mkdir()
    write_note("tasks/prompts/bbb.md", "---\naliases: [demo]\n---\nDemo body")
    list_directory = filesystem.list_directory

    def guarded(path):
        if filesystem.validate_path(path) == locked:
            raise PermissionError(f"Permission denied: '{path}'")
        return list_directory(path)

    monkeypatch.setattr(filesystem, "list_directory", guarded)

    result = discover_prompt("demo", filesystem, config, ["locked", "tasks/prompts"])

    assert result.match == "alias"
    assert result.path.name == "bbb.md"


def test_path_info_permission_error_falls_through_to_next_path(filesystem, config, write_note, vault, monkeypatch):
    locked = vault / "locked"
    write_note("locked/focus.md", "Locked body")
    write_note("tasks/prompts/focus.md", "Prompt body")
    path_info = filesystem.path_info

    def guarded(path):
        if locked in filesystem.validate_path(path).parents:
            raise PermissionError(f"Permission denied: '{path}'")
        return path_info(path)

    monkeypatch.setattr(filesystem, "path_info", guarded)

    result = discover_prompt("focus", filesystem, config, ["locked", "tasks/prompts"])

    assert result.match == "exact"
    assert result.path == vault / "tasks" / "prompts" / "focus.md"
