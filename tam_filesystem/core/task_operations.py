"""Task notes: creation from template and markdown checklist tracking."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from tam_filesystem.core.discovery_operations import discover_prompt, find_exact_match
from tam_filesystem.core.filesystem_operations import VaultFilesystem
from tam_filesystem.core.frontmatter_operations import (
    ensure_valid_yaml,
    load_document,
    serialize_document,
    split_frontmatter,
    split_raw_frontmatter,
)
from tam_filesystem.core.security_operations import create_safe_filename
from tam_filesystem.core.template_operations import format_moment, process_templater
from tam_filesystem.core.variable_operations import substitute_variables
from tam_filesystem.data_models import ChecklistItem, DiscoveryResult, TaskProgress, VaultConfig
from tam_filesystem.errors import PromptError

logger = logging.getLogger(__name__)

TASK_TEMPLATE_NAME = "Task"
MAX_FILENAME_ATTEMPTS = 100
WRITE_MATCH_TYPES = ("exact", "alias")

_CHECKBOX = re.compile(r"^(?P<indent>[ \t]*)(?P<bullet>[-*+])\s+\[(?P<mark>[ xX])\]\s+(?P<text>.*?)\s*$")
_BLOCKER_WORDS = ("blocked", "waiting")

DEFAULT_TASK_LAYOUT = """# {{name}}

{{description}}

## Checklist

{{checklist}}
"""


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def _indent_width(indent: str) -> int:
    return len(indent.replace("\t", "    "))


def _flatten(items: list[ChecklistItem]) -> list[ChecklistItem]:
    flat: list[ChecklistItem] = []
    for item in items:
        flat.append(item)
        flat.extend(_flatten(item.sub_items))
    return flat


def _find_task(
    name: str,
    filesystem: VaultFilesystem,
    config: VaultConfig,
    *,
    for_write: bool = False,
) -> DiscoveryResult:
    try:
        found = discover_prompt(name, filesystem, config, [config.tasks_path])
    except PromptError as exc:
        raise FileNotFoundError(f"Task '{name}' not found in '{config.tasks_path}'.") from exc
    if for_write:
        _require_named_match(name, found, "Task")
    return found


def _require_named_match(name: str, found: DiscoveryResult, kind: str) -> None:
    """Writes only go to documents matched by filename or alias."""
    if found.match not in WRITE_MATCH_TYPES:
        logger.info("Refusing %s match '%s' for '%s' on write", found.match, found.path, name)
        raise FileNotFoundError(
            f"{kind} '{name}' not found by name or alias (closest: '{found.path.stem}' via {found.match} match)."
        )


def _load_task_template(filesystem: VaultFilesystem, config: VaultConfig) -> Optional[tuple[Path, dict[str, Any], str]]:
    """Return the ``Task`` template (path, metadata, body) when one exists."""
    try:
        templates_dir = filesystem.resolve_vault_path(config.templates_path)
        found = find_exact_match(filesystem, templates_dir, TASK_TEMPLATE_NAME)
        if found is None:
            return None
        metadata, body = split_frontmatter(filesystem.read_text(found.path))
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Task template unavailable, using default layout: %s", exc)
        return None
    return found.path, metadata, body


def _next_available_path(filesystem: VaultFilesystem, directory: Path, name: str) -> Path:
    base = create_safe_filename(name)[: -len(".md")]
    for attempt in range(1, MAX_FILENAME_ATTEMPTS + 1):
        filename = f"{base}.md" if attempt == 1 else f"{base} {attempt}.md"
        candidate = filesystem.join(directory, filename)
        if not filesystem.path_info(candidate).exists:
            return candidate
    raise FileExistsError(f"Could not find a free filename for task '{name}' in '{directory}'.")


# ==============================================================================
# CHECKLIST PARSING
# ==============================================================================


def parse_checklist(content: str) -> list[ChecklistItem]:
    """Parse markdown checkboxes (``- [ ]`` / ``- [x]``) into a nested list.

    Nesting follows indentation; ``line`` is the 0-based line index within
    ``content``.
    """
    roots: list[ChecklistItem] = []
    stack: list[ChecklistItem] = []

    for index, line in enumerate(content.splitlines()):
        match = _CHECKBOX.match(line)
        if not match:
            continue

        depth = _indent_width(match.group("indent"))
        item = ChecklistItem(
            text=match.group("text"),
            completed=match.group("mark") in "xX",
            line=index,
            depth=depth,
        )
        while stack and stack[-1].depth >= depth:
            stack.pop()
        if stack:
            stack[-1].sub_items.append(item)
        else:
            roots.append(item)
        stack.append(item)

    return roots


def calculate_progress(checklist: list[ChecklistItem], now: Optional[datetime] = None) -> TaskProgress:
    """Compute completion metrics over every item, nested ones included."""
    items = _flatten(checklist)
    total = len(items)
    completed = sum(1 for item in items if item.completed)
    open_items = [item.text for item in items if not item.completed]

    return TaskProgress(
        completion_percentage=(completed / total) * 100 if total else 0.0,
        total_items=total,
        completed_items=completed,
        next_actions=open_items[:3],
        blockers=[text for text in open_items if any(word in text.lower() for word in _BLOCKER_WORDS)],
        last_updated=now or datetime.now(),
    )


def _match_updates(
    items: list[ChecklistItem],
    updates: dict[str, bool],
) -> tuple[dict[int, bool], list[str], list[str]]:
    """Map update keys (1-based numbers or item text) onto checklist lines."""
    by_line: dict[int, bool] = {}
    applied: list[str] = []
    unmatched: list[str] = []

    for key, state in updates.items():
        target: Optional[ChecklistItem] = None
        cleaned = str(key).strip()
        if cleaned.isdigit():
            position = int(cleaned)
            if 1 <= position <= len(items):
                target = items[position - 1]
        else:
            lowered = cleaned.lower()
            target = next((item for item in items if item.text.strip().lower() == lowered), None)

        if target is None:
            unmatched.append(str(key))
            continue
        by_line[target.line] = bool(state)
        applied.append(str(key))

    return by_line, applied, unmatched


def update_checklist_in_content(content: str, states: dict[int, bool]) -> str:
    """Rewrite the checkbox marker on each line in ``states``; other text is untouched."""
    lines = content.splitlines(keepends=True)
    for index, completed in states.items():
        if index >= len(lines):
            continue
        lines[index] = re.sub(
            r"\[[ xX]\]",
            "[x]" if completed else "[ ]",
            lines[index],
            count=1,
        )
    return "".join(lines)


# ==============================================================================
# TASK OPERATIONS
# ==============================================================================


def create_task(
    name: str,
    description: str,
    checklist: list[str],
    metadata: Optional[dict[str, Any]] = None,
    *,
    filesystem: VaultFilesystem,
    config: VaultConfig,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Create a task note from the ``Task`` template (or a default layout).

    The name is checked for collisions right before an exclusive-create
    write; a ` 2`, ` 3`, ... suffix is added when the file exists. Two
    concurrent callers can still race between the check and the write, in
    which case the loser moves on to the next suffix.

    Args:
        name: Task name; also the basis for the filename.
        description: Free-text description placed in the body.
        checklist: Checklist item texts, written as open checkboxes.
        metadata: Extra frontmatter fields; they override template fields.
        filesystem: Root-scoped filesystem access.
        config: Server configuration (tasks and templates paths).
        now: Creation time.

    Returns:
        Dictionary with task, path, status, checklist_items and template.

    Raises:
        ValueError: If the name is empty or metadata cannot be serialized.
        FileExistsError: If no free filename could be found.
    """
    cleaned = name.strip()
    if not cleaned:
        raise ValueError("Task name cannot be empty.")

    created_at = now or datetime.now()
    tasks_dir = filesystem.resolve_vault_path(config.tasks_path)

    template = _load_task_template(filesystem, config)
    template_path: Optional[Path] = None
    template_metadata: dict[str, Any] = {}
    layout = DEFAULT_TASK_LAYOUT
    if template is not None:
        template_path, template_metadata, layout = template

    frontmatter: dict[str, Any] = {
        **template_metadata,
        "type": "task",
        "status": "open",
        "created": created_at.date().isoformat(),
        **(metadata or {}),
    }
    ensure_valid_yaml(frontmatter)

    bindings = {
        "name": cleaned,
        "title": cleaned,
        "description": description,
        "checklist": "\n".join(f"- [ ] {item.strip()}" for item in checklist if item.strip()),
        "date": format_moment(created_at, config.default_date_format),
    }
    body = process_templater(
        layout,
        bindings,
        frontmatter=frontmatter,
        now=created_at,
        date_format=config.default_date_format,
    )
    body = substitute_variables(body, bindings).content
    serialized = serialize_document(frontmatter, body.strip() + "\n")

    target: Optional[Path] = None
    for _ in range(MAX_FILENAME_ATTEMPTS):
        candidate = _next_available_path(filesystem, tasks_dir, cleaned)
        try:
            target = filesystem.write_text(candidate, serialized, exclusive=True)
            break
        except FileExistsError:
            logger.debug("Task file '%s' appeared concurrently; retrying", candidate)
    if target is None:
        raise FileExistsError(f"Could not create task '{cleaned}' in '{tasks_dir}'.")

    logger.info("Created task '%s' at '%s'", cleaned, target)
    return {
        "task": target.stem,
        "path": str(target),
        "status": "created",
        "checklist_items": len(parse_checklist(body)),
        "template": str(template_path) if template_path else None,
    }


def get_task_status(
    name: str,
    *,
    filesystem: VaultFilesystem,
    config: VaultConfig,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Locate a task note and report its checklist progress.

    Raises:
        FileNotFoundError: If no task matches ``name``.
    """
    found = _find_task(name, filesystem, config)
    document = load_document(filesystem, found.path)
    checklist = parse_checklist(document.body)
    progress = calculate_progress(checklist, now)
    return {
        "task": found.path.stem,
        "path": str(found.path),
        "match": found.match,
        "status": document.metadata.get("status"),
        "progress": progress.as_payload(),
        "checklist": [item.as_payload() for item in checklist],
    }


def update_task_progress(
    name: str,
    updates: dict[str, bool],
    *,
    filesystem: VaultFilesystem,
    config: VaultConfig,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """Set checklist items complete or incomplete.

    Args:
        name: Task name, filename or alias.
        updates: Maps a 1-based item number (``"2"``) or the item text
            (case-insensitive) to the desired completion state.

    Returns:
        Dictionary with task, path, status (``updated``/``unchanged``),
        applied and unmatched keys, and the resulting progress.

    Raises:
        FileNotFoundError: If no task matches ``name`` by filename or alias.
    """
    found = _find_task(name, filesystem, config, for_write=True)
    raw_text = filesystem.read_text(found.path)
    prefix, rest = split_raw_frontmatter(raw_text)

    items = _flatten(parse_checklist(rest))
    states, applied, unmatched = _match_updates(items, updates)
    updated_rest = update_checklist_in_content(rest, states)

    status = "unchanged"
    if updated_rest != rest:
        filesystem.write_text(found.path, prefix + updated_rest)
        status = "updated"
        logger.info("Updated %d checklist item(s) in task '%s'", len(applied), found.path.stem)

    progress = calculate_progress(parse_checklist(updated_rest), now)
    return {
        "task": found.path.stem,
        "path": str(found.path),
        "status": status,
        "applied": applied,
        "unmatched": unmatched,
        "progress": progress.as_payload(),
    }


def _append_unique(metadata: dict[str, Any], key: str, entry: Any) -> bool:
    current = metadata.get(key)
    entries = list(current) if isinstance(current, list) else []
    if entry in entries:
        return False
    entries.append(entry)
    metadata[key] = entries
    return True


def link_task_to_prompt(
    task_name: str,
    prompt_name: str,
    relationship: str = "uses",
    *,
    filesystem: VaultFilesystem,
    config: VaultConfig,
) -> dict[str, Any]:
    """Record a task ↔ prompt relationship in both documents' frontmatter.

    The task gains ``{prompt, relationship}`` in its ``prompts`` list and the
    prompt gains the task name in its ``tasks`` list. Existing entries are
    not duplicated. Both documents must match by filename or alias.

    Raises:
        FileNotFoundError: If the task or the prompt cannot be found.
    """
    task = _find_task(task_name, filesystem, config, for_write=True)
    try:
        prompt = discover_prompt(prompt_name, filesystem, config)
    except PromptError as exc:
        raise FileNotFoundError(f"Prompt '{prompt_name}' not found.") from exc
    _require_named_match(prompt_name, prompt, "Prompt")

    changed: list[str] = []
    targets = (
        (task.path, "prompts", {"prompt": prompt.path.stem, "relationship": relationship}),
        (prompt.path, "tasks", task.path.stem),
    )
    for path, key, entry in targets:
        metadata, content = split_frontmatter(filesystem.read_text(path))
        if not _append_unique(metadata, key, entry):
            continue
        ensure_valid_yaml(metadata)
        filesystem.write_text(path, serialize_document(metadata, content))
        changed.append(path.stem)

    logger.info(
        "Linked task '%s' to prompt '%s' (%s, changed=%s)",
        task.path.stem,
        prompt.path.stem,
        relationship,
        ", ".join(changed) or "none",
    )
    return {
        "task": task.path.stem,
        "prompt": prompt.path.stem,
        "relationship": relationship,
        "status": "linked" if changed else "unchanged",
    }
