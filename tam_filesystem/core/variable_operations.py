"""Template variable declarations, validation and ``{{placeholder}}`` substitution."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Union

from tam_filesystem.constants import VARIABLE_FIELDS, VARIABLE_TYPES
from tam_filesystem.data_models import SubstitutionResult, VariableSpec, VariableValidation

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")


# ==============================================================================
# DECLARATION SHAPES
# ==============================================================================


@dataclass(frozen=True)
class NameDeclaration:
    """``prompt-vars: [topic, client]``"""

    name: str


@dataclass(frozen=True)
class StructuredDeclaration:
    """``prompt-vars: [{name: topic, type: string}]``"""

    entry: Mapping[str, Any]


@dataclass(frozen=True)
class MappingDeclaration:
    """``prompt-vars: {topic: {type: string}}``"""

    name: str
    entry: Any


VariableDeclaration = Union[NameDeclaration, StructuredDeclaration, MappingDeclaration]


def _find_declaration_field(metadata: Mapping[str, Any]) -> Any:
    for field_name in VARIABLE_FIELDS:
        if field_name in metadata:
            return metadata[field_name]
    return None


def read_declarations(metadata: Mapping[str, Any]) -> list[VariableDeclaration]:
    """Classify the raw variable declaration field into tagged declarations.

    Unrecognized shapes and entries are dropped rather than rejected.
    """
    raw = _find_declaration_field(metadata)
    declarations: list[VariableDeclaration] = []

    if isinstance(raw, list):
        for item in raw:
            if isinstance(item, str):
                declarations.append(NameDeclaration(item))
            elif isinstance(item, Mapping):
                declarations.append(StructuredDeclaration(item))
            else:
                logger.debug("Skipping variable declaration entry %r", item)
    elif isinstance(raw, Mapping):
        for key, entry in raw.items():
            declarations.append(MappingDeclaration(str(key), entry))
    elif raw is not None:
        logger.debug("Ignoring variable declaration field of type %s", type(raw).__name__)

    return declarations


def _spec_from_entry(name: Any, entry: Mapping[str, Any]) -> Optional[VariableSpec]:
    if not isinstance(name, str) or not name.strip():
        return None

    var_type = entry.get("type", "string")
    if not isinstance(var_type, str) or var_type.lower() not in VARIABLE_TYPES:
        logger.debug("Unknown type %r for variable '%s'; using string", var_type, name)
        var_type = "string"

    options = entry.get("options")
    if isinstance(options, (list, tuple)):
        options = tuple(options)
    elif options is not None:
        options = (options,)

    description = entry.get("description")
    return VariableSpec(
        name=name.strip(),
        type=var_type.lower(),
        required=entry.get("required") is not False,
        default=entry.get("default"),
        options=options,
        description=str(description) if description is not None else None,
    )


def _to_spec(declaration: VariableDeclaration) -> Optional[VariableSpec]:
    if isinstance(declaration, NameDeclaration):
        name = declaration.name.strip()
        return VariableSpec(name=name) if name else None
    if isinstance(declaration, StructuredDeclaration):
        return _spec_from_entry(declaration.entry.get("name"), declaration.entry)
    if isinstance(declaration.entry, Mapping):
        return _spec_from_entry(declaration.name, declaration.entry)
    # ``topic: null`` or ``topic: "some text"`` under a mapping
    return _spec_from_entry(declaration.name, {})


def extract_variable_specs(metadata: Mapping[str, Any]) -> list[VariableSpec]:
    """Normalize a document's variable declarations into ``VariableSpec`` objects.

    The declaration field is looked up as ``prompt-vars``, ``variables`` or
    ``vars`` (first present wins) and may be a list of names, a list of
    objects carrying ``name``, or a mapping of name to spec. Entries that
    cannot be interpreted are skipped; duplicate names keep the first entry.
    """
    specs: list[VariableSpec] = []
    seen: set[str] = set()
    for declaration in read_declarations(metadata):
        spec = _to_spec(declaration)
        if spec is None or spec.name in seen:
            continue
        seen.add(spec.name)
        specs.append(spec)
    return specs


def extract_content_variables(content: str) -> list[str]:
    """Return placeholder names referenced in ``content`` in first-seen order."""
    names: list[str] = []
    for match in PLACEHOLDER_PATTERN.finditer(content):
        name = match.group(1).split(":", 1)[0].strip()
        if name and name not in names:
            names.append(name)
    return names


# ==============================================================================
# VALIDATION
# ==============================================================================


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _is_valid_date(value: Any) -> bool:
    if isinstance(value, (date, datetime)):
        return True
    if not isinstance(value, str):
        return False
    candidate = value.strip()
    try:
        date.fromisoformat(candidate[:10])
    except ValueError:
        return False
    if len(candidate) > 10:
        try:
            datetime.fromisoformat(candidate.replace("Z", "+00:00"))
        except ValueError:
            return False
    return True


def _type_error(spec: VariableSpec, value: Any) -> Optional[str]:
    if spec.type == "string":
        ok = isinstance(value, str)
    elif spec.type == "number":
        ok = isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
    elif spec.type == "boolean":
        ok = isinstance(value, bool)
    elif spec.type == "date":
        ok = _is_valid_date(value)
    else:
        ok = True

    if ok:
        return None
    return f"Variable '{spec.name}' must be of type {spec.type}, got {type(value).__name__}: {value!r}"


def validate_variables(specs: list[VariableSpec], bindings: Mapping[str, Any]) -> VariableValidation:
    """Check ``bindings`` against ``specs`` and aggregate every problem found.

    A required variable that is absent, ``None`` or ``""`` is reported as
    missing and not checked further. Present values must match the declared
    type and, when ``options`` are declared, be one of them. Options apply
    regardless of whether the value came from the caller or a default.

    Args:
        specs: Normalized variable specs.
        bindings: Variables after default merging.

    Returns:
        A :class:`VariableValidation` listing missing specs and error messages.
    """
    missing: list[VariableSpec] = []
    errors: list[str] = []

    for spec in specs:
        value = bindings.get(spec.name)
        if _is_blank(value):
            if spec.required:
                missing.append(spec)
            continue

        type_error = _type_error(spec, value)
        if type_error:
            errors.append(type_error)
            continue

        if spec.options is not None and value not in spec.options:
            allowed = ", ".join(repr(option) for option in spec.options)
            errors.append(f"Variable '{spec.name}' must be one of [{allowed}], got {value!r}")

    return VariableValidation(missing=missing, errors=errors)


# ==============================================================================
# SUBSTITUTION
# ==============================================================================


def merge_variables_with_defaults(bindings: Mapping[str, Any], specs: list[VariableSpec]) -> dict[str, Any]:
    """Return a copy of ``bindings`` with spec defaults filling unsupplied names."""
    merged = dict(bindings)
    for spec in specs:
        if spec.has_default and spec.name not in merged:
            merged[spec.name] = spec.default
    return merged


def render_value(value: Any) -> str:
    """String form used when a bound value is written into content."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ", ".join(render_value(item) for item in value)
    return str(value)


def substitute_variables(content: str, bindings: Mapping[str, Any]) -> SubstitutionResult:
    """Replace ``{{name}}`` and ``{{name:default}}`` placeholders in one pass.

    A name present in ``bindings`` (even with a falsy value) is substituted;
    otherwise an inline default is used; otherwise the placeholder is kept
    verbatim and reported missing. Substituted text is never re-scanned.
    """
    used: dict[str, Any] = {}
    missing: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        name, separator, default = match.group(1).partition(":")
        name = name.strip()

        if name in bindings:
            value = bindings[name]
            used[name] = value
            return render_value(value)
        if separator:
            literal = default.strip()
            used[name] = literal
            return literal

        if name not in missing:
            missing.append(name)
        return match.group(0)

    processed = PLACEHOLDER_PATTERN.sub(_replace, content)
    return SubstitutionResult(content=processed, used=used, missing=missing)
