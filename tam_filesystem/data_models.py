"""Data models for vault configuration, documents, prompts and tasks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional


@dataclass(frozen=True)
class VaultConfig:
    """Normalized server configuration.

    Built once at start-up by :func:`tam_filesystem.config.load_vault_config`
    and shared read-only by every request.
    """

    allowed_directories: tuple[Path, ...]
    prompts_path: str = "tasks/prompts"
    tasks_path: str = "tasks"
    templates_path: str = "utilities/templates"
    enable_obsidian_features: bool = True
    cache_prompts: bool = True
    max_search_results: int = 10
    templater_lite: bool = True
    wikilink_resolution: bool = False
    # Declared and reported only; discovery uses the prompt_* thresholds below.
    fuzzy_threshold: float = 0.6
    strict_variables: bool = False
    default_date_format: str = "YYYY-MM-DD"
    prompt_fuzzy_match_threshold: float = 0.3
    prompt_content_match_threshold: float = 0.2
    prompt_suggestion_threshold: float = 0.2
    allowed_extensions: tuple[str, ...] = (".md", ".txt", ".json")
    vault_name: Optional[str] = None

    @property
    def vault_root(self) -> Path:
        """Vault-relative paths resolve against the first allowed directory."""
        if not self.allowed_directories:
            raise ValueError("No allowed directories configured.")
        return self.allowed_directories[0]

    def as_payload(self) -> dict[str, Any]:
        """Return a serializable payload representation."""
        return {
            "vault": self.vault_name,
            "allowed_directories": [str(path) for path in self.allowed_directories],
            "paths": {
                "prompts": self.prompts_path,
                "tasks": self.tasks_path,
                "templates": self.templates_path,
            },
            "features": {
                "obsidian_features": self.enable_obsidian_features,
                "cache_prompts": self.cache_prompts,
                "templater_lite": self.templater_lite,
                "wikilink_resolution": self.wikilink_resolution,
            },
            "search": {
                "max_results": self.max_search_results,
                "fuzzy_threshold": self.fuzzy_threshold,
                "prompt_fuzzy_match_threshold": self.prompt_fuzzy_match_threshold,
                "prompt_content_match_threshold": self.prompt_content_match_threshold,
                "prompt_suggestion_threshold": self.prompt_suggestion_threshold,
            },
            "variables": {
                "strict_validation": self.strict_variables,
                "default_date_format": self.default_date_format,
            },
        }


# ==============================================================================
# FILESYSTEM
# ==============================================================================


@dataclass(frozen=True)
class DirectoryEntry:
    """One entry of a directory listing."""

    name: str
    is_file: bool

    def display(self) -> str:
        return f"{'[FILE]' if self.is_file else '[DIR]'} {self.name}"

    def as_payload(self) -> dict[str, Any]:
        return {"name": self.name, "type": "file" if self.is_file else "directory"}


@dataclass(frozen=True)
class PathInfo:
    """Existence and type information for a filesystem path."""

    exists: bool
    is_file: bool = False
    is_directory: bool = False
    size: Optional[int] = None
    modified: Optional[datetime] = None


# ==============================================================================
# DOCUMENTS AND VARIABLES
# ==============================================================================


@dataclass(frozen=True)
class ParsedDocument:
    """A markdown document split into frontmatter metadata and body."""

    metadata: dict[str, Any]
    body: str
    aliases: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    @property
    def title(self) -> Optional[str]:
        title = self.metadata.get("title")
        return title if isinstance(title, str) else None


@dataclass(frozen=True)
class VariableSpec:
    """Normalized description of one expected template variable."""

    name: str
    type: str = "string"
    required: bool = True
    default: Any = None
    options: Optional[tuple[Any, ...]] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Variable spec name cannot be empty.")

    @property
    def has_default(self) -> bool:
        return self.default is not None

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "required": self.required,
        }
        if self.default is not None:
            payload["default"] = self.default
        if self.options is not None:
            payload["options"] = list(self.options)
        if self.description is not None:
            payload["description"] = self.description
        return payload


@dataclass(frozen=True)
class VariableValidation:
    """Aggregated result of validating bindings against variable specs."""

    missing: list[VariableSpec] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.missing and not self.errors

    @property
    def missing_names(self) -> list[str]:
        return [spec.name for spec in self.missing]


@dataclass(frozen=True)
class SubstitutionResult:
    """Output of a single placeholder substitution pass."""

    content: str
    used: dict[str, Any] = field(default_factory=dict)
    missing: list[str] = field(default_factory=list)


# ==============================================================================
# DISCOVERY AND RESOLUTION
# ==============================================================================


@dataclass(frozen=True)
class DiscoveryResult:
    """The single document chosen by a discovery call."""

    path: Path
    match: str
    score: float

    def as_payload(self) -> dict[str, Any]:
        return {"path": str(self.path), "match": self.match, "score": round(self.score, 4)}


@dataclass(frozen=True)
class PromptOptions:
    """Per-call options for prompt resolution."""

    include_wikilinks: bool = False
    process_templater: bool = True
    search_paths: Optional[list[str]] = None
    strict_variables: Optional[bool] = None


@dataclass(frozen=True)
class PromptHit:
    """Summary of the document a prompt resolved to."""

    id: str
    name: str
    path: str
    title: str
    match: str
    aliases: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    frontmatter_excerpt: str = ""

    def as_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "title": self.title,
            "match": self.match,
            "aliases": list(self.aliases),
            "tags": list(self.tags),
            "frontmatter_excerpt": self.frontmatter_excerpt,
        }


@dataclass(frozen=True)
class ResolutionOutcome:
    """Final payload of a prompt resolution.

    Constructed once per call. ``error`` is populated (and ``resolved`` is
    ``False``) when resolution failed; callers branch on ``error["code"]``.
    """

    resolved: bool
    content: str = ""
    confidence: float = 0.0
    auto_apply_recommended: bool = False
    chosen: Optional[PromptHit] = None
    variables_used: dict[str, Any] = field(default_factory=dict)
    missing_variables: list[str] = field(default_factory=list)
    missing_variable_specs: list[VariableSpec] = field(default_factory=list)
    validation_errors: list[str] = field(default_factory=list)
    candidates: list[str] = field(default_factory=list)
    unresolved_links: list[str] = field(default_factory=list)
    processing: dict[str, bool] = field(default_factory=dict)
    error: Optional[dict[str, Any]] = None

    def as_payload(self) -> dict[str, Any]:
        """Return a serializable payload representation."""
        payload: dict[str, Any] = {
            "resolved": self.resolved,
            "auto_apply_recommended": self.auto_apply_recommended,
            "confidence": round(self.confidence, 4),
            "content": self.content,
            "variables_used": dict(self.variables_used),
            "missing_variables": list(self.missing_variables),
            "missing_variable_specs": [spec.as_payload() for spec in self.missing_variable_specs],
            "validation_errors": list(self.validation_errors),
            "candidates": list(self.candidates),
            "unresolved_links": list(self.unresolved_links),
            "processing": dict(self.processing),
        }
        if self.chosen is not None:
            payload["chosen"] = self.chosen.as_payload()
        if self.error is not None:
            payload["error"] = dict(self.error)
        return payload


# ==============================================================================
# TASKS
# ==============================================================================


@dataclass
class ChecklistItem:
    """A markdown checkbox line, with nested items below it."""

    text: str
    completed: bool
    line: int
    depth: int = 0
    sub_items: list[ChecklistItem] = field(default_factory=list)

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"text": self.text, "completed": self.completed}
        if self.sub_items:
            payload["sub_items"] = [item.as_payload() for item in self.sub_items]
        return payload


@dataclass(frozen=True)
class TaskProgress:
    """Completion metrics for a task checklist."""

    completion_percentage: float
    total_items: int
    completed_items: int
    next_actions: list[str]
    blockers: list[str]
    last_updated: datetime

    def as_payload(self) -> dict[str, Any]:
        return {
            "completion_percentage": round(self.completion_percentage, 1),
            "total_items": self.total_items,
            "completed_items": self.completed_items,
            "next_actions": list(self.next_actions),
            "blockers": list(self.blockers),
            "last_updated": self.last_updated.isoformat(),
        }
