"""Prompt resolution: discovery, variable handling and template processing."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional

from tam_filesystem.constants import AUTO_APPLY_CONFIDENCE
from tam_filesystem.core.discovery_operations import discover_prompt, suggest_prompts
from tam_filesystem.core.filesystem_operations import VaultFilesystem
from tam_filesystem.core.frontmatter_operations import load_document
from tam_filesystem.core.template_operations import process_templater
from tam_filesystem.core.variable_operations import (
    extract_content_variables,
    extract_variable_specs,
    merge_variables_with_defaults,
    substitute_variables,
    validate_variables,
)
from tam_filesystem.data_models import (
    DiscoveryResult,
    ParsedDocument,
    PromptHit,
    PromptOptions,
    ResolutionOutcome,
    VariableSpec,
    VaultConfig,
)
from tam_filesystem.errors import PromptError, TamFilesystemError

logger = logging.getLogger(__name__)

_EXCERPT_FIELDS = ("title", "description", "aliases", "tags")


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def _frontmatter_excerpt(metadata: Mapping[str, Any]) -> str:
    relevant: dict[str, Any] = {}
    for field_name in _EXCERPT_FIELDS:
        if metadata.get(field_name) is not None:
            relevant[field_name] = metadata[field_name]
    declared = metadata.get("prompt-vars", metadata.get("variables"))
    if declared is not None:
        relevant["prompt-vars"] = declared
    if not relevant:
        return ""
    return json.dumps(relevant, indent=2, default=str)


def _build_hit(discovery: DiscoveryResult, document: ParsedDocument) -> PromptHit:
    name = discovery.path.stem
    return PromptHit(
        id=name,
        name=name,
        path=str(discovery.path),
        title=document.title or name,
        match=discovery.match,
        aliases=document.aliases,
        tags=document.tags,
        frontmatter_excerpt=_frontmatter_excerpt(document.metadata),
    )


def _missing_specs(missing: list[str], specs: list[VariableSpec]) -> list[VariableSpec]:
    declared = {spec.name: spec for spec in specs}
    return [
        declared.get(name) or VariableSpec(name=name, description=f"Missing variable: {name}")
        for name in missing
    ]


def _error_outcome(error: TamFilesystemError, candidates: Optional[list[str]] = None) -> ResolutionOutcome:
    return ResolutionOutcome(
        resolved=False,
        candidates=candidates or [],
        processing={
            "templater_processed": False,
            "wikilink_resolution": False,
            "variable_interpolation": False,
        },
        error=error.as_payload(),
    )


# ==============================================================================
# PROMPT OPERATIONS
# ==============================================================================


def _resolve(
    name: str,
    variables: Mapping[str, Any],
    options: PromptOptions,
    filesystem: VaultFilesystem,
    config: VaultConfig,
    now: Optional[datetime],
) -> ResolutionOutcome:
    discovery = discover_prompt(name, filesystem, config, options.search_paths)
    try:
        document = load_document(filesystem, discovery.path)
    except (OSError, UnicodeDecodeError) as exc:
        raise PromptError(
            "unknown_error",
            f"Failed to load prompt file '{discovery.path}': {exc}",
            {"path": str(discovery.path)},
        ) from exc

    specs = extract_variable_specs(document.metadata)
    merged = merge_variables_with_defaults(dict(variables), specs)

    strict = config.strict_variables if options.strict_variables is None else options.strict_variables
    validation_errors: list[str] = []
    unresolved_declared: list[VariableSpec] = []
    if strict or specs:
        validation = validate_variables(specs, merged)
        if not validation.is_valid and strict:
            details = {"missing": validation.missing_names, "errors": validation.errors}
            if validation.missing:
                raise PromptError(
                    "missing_required_variables",
                    f"Missing required variables: {', '.join(validation.missing_names)}",
                    details,
                )
            raise PromptError(
                "invalid_variable_type",
                f"Invalid variables: {'; '.join(validation.errors)}",
                details,
            )
        validation_errors = validation.errors
        # Placeholders the body references are reported by substitution instead
        referenced = set(extract_content_variables(document.body))
        unresolved_declared = [spec for spec in validation.missing if spec.name not in referenced]

    content = document.body
    templater_processed = False
    if options.process_templater and config.templater_lite:
        content = process_templater(
            content,
            merged,
            file_path=discovery.path,
            frontmatter=document.metadata,
            now=now,
            date_format=config.default_date_format,
        )
        templater_processed = True

    substitution = substitute_variables(content, merged)

    if options.include_wikilinks:
        logger.info("Wikilink resolution requested for '%s' but is not supported; skipping", name)

    confidence = discovery.score
    return ResolutionOutcome(
        resolved=True,
        content=substitution.content,
        confidence=confidence,
        auto_apply_recommended=confidence >= AUTO_APPLY_CONFIDENCE and not substitution.missing,
        chosen=_build_hit(discovery, document),
        variables_used=substitution.used,
        missing_variables=substitution.missing,
        missing_variable_specs=_missing_specs(substitution.missing, specs) + unresolved_declared,
        validation_errors=validation_errors,
        processing={
            "templater_processed": templater_processed,
            "wikilink_resolution": False,
            "variable_interpolation": True,
        },
    )


def get_prompted(
    name: str,
    variables: Optional[Mapping[str, Any]] = None,
    options: Optional[PromptOptions] = None,
    *,
    filesystem: VaultFilesystem,
    config: VaultConfig,
    now: Optional[datetime] = None,
) -> ResolutionOutcome:
    """Discover, load and render a prompt document.

    Failures never propagate: a missing prompt, an access violation or (in
    strict mode) missing required variables come back as an outcome with
    ``resolved=False`` and a structured ``error`` (``code``, ``message``,
    ``details``). Not-found outcomes carry "did you mean" ``candidates``.

    Args:
        name: Prompt name, filename or alias.
        variables: Caller bindings; they take precedence over spec defaults.
        options: Search path override, strictness and processing flags.
        filesystem: Root-scoped filesystem access.
        config: Server configuration.
        now: Reference time for templater date expressions.

    Returns:
        The :class:`ResolutionOutcome` for this call.
    """
    options = options or PromptOptions()
    try:
        outcome = _resolve(name, variables or {}, options, filesystem, config, now)
    except PromptError as exc:
        candidates: list[str] = []
        if exc.code == "prompt_not_found":
            candidates = suggest_prompts(name, filesystem, config, options.search_paths)
        logger.warning("get_prompted failed for '%s': %s", name, exc.message)
        return _error_outcome(exc, candidates)
    except TamFilesystemError as exc:
        logger.warning("get_prompted denied for '%s': %s", name, exc.message)
        return _error_outcome(exc)

    logger.info(
        "Resolved prompt '%s' (used=%d, missing=%d)",
        name,
        len(outcome.variables_used),
        len(outcome.missing_variables),
    )
    return outcome
