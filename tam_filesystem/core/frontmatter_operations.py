"""YAML frontmatter parsing and normalization for vault documents."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any

import frontmatter
import yaml

from tam_filesystem.constants import MAX_FRONTMATTER_BYTES
from tam_filesystem.core.filesystem_operations import VaultFilesystem
from tam_filesystem.data_models import ParsedDocument

logger = logging.getLogger(__name__)

_FRONTMATTER_BLOCK = re.compile(r"\A\ufeff?---[ \t]*\r?\n(.*?\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_TAG_SEPARATORS = re.compile(r"[,\s]+")


# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================


def _convert(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _convert(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_convert(item) for item in value]
    return value


def normalize_aliases(value: Any) -> list[str]:
    """Normalize an ``aliases`` frontmatter value into a list of strings.

    A single string becomes a one-element list, a list keeps only its string
    elements, and anything else (including a missing field) yields ``[]``.
    """
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    return []


def normalize_tags(value: Any) -> list[str]:
    """Normalize a ``tags`` frontmatter value into a list of strings.

    A single string is split on commas and whitespace (``"a, b c"`` becomes
    ``["a", "b", "c"]``); a list keeps only its string elements.
    """
    if isinstance(value, str):
        return [token for token in _TAG_SEPARATORS.split(value) if token]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, str)]
    return []


def split_raw_frontmatter(text: str) -> tuple[str, str]:
    """Split ``text`` into the raw frontmatter block (delimiters included) and the rest."""
    match = _FRONTMATTER_BLOCK.match(text)
    if not match:
        return "", text
    return text[: match.end()], text[match.end():]


# ==============================================================================
# PARSING
# ==============================================================================


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter metadata and the untrimmed body from raw text.

    Malformed YAML, or a block that does not hold a mapping, degrades to empty
    metadata instead of raising; user-authored notes must stay processable.

    Args:
        text: Raw markdown text, possibly containing a frontmatter block.

    Returns:
        A tuple of ``(metadata, content)``.
    """
    if not text:
        return {}, ""

    try:
        post = frontmatter.loads(text)
    except (yaml.YAMLError, ValueError, TypeError) as exc:
        logger.debug("Degrading malformed frontmatter to empty metadata: %s", exc)
        return {}, split_raw_frontmatter(text)[1]

    metadata = post.metadata if isinstance(post.metadata, Mapping) else {}
    metadata = {str(key): _convert(value) for key, value in metadata.items()}
    content = post.content if post.content is not None else ""
    return metadata, content


def parse_document(text: str) -> ParsedDocument:
    """Split ``text`` into metadata and a trimmed body with normalized aliases/tags."""
    metadata, content = split_frontmatter(text)
    return ParsedDocument(
        metadata=metadata,
        body=content.strip(),
        aliases=normalize_aliases(metadata.get("aliases")),
        tags=normalize_tags(metadata.get("tags")),
    )


def serialize_document(metadata: dict[str, Any], body: str) -> str:
    """Serialize metadata and body back into markdown.

    Args:
        metadata: Frontmatter dictionary. Empty dict omits the block.
        body: Markdown body (without frontmatter).

    Returns:
        Markdown text including a YAML frontmatter block when ``metadata`` is not empty.
    """
    if not metadata:
        return body

    post = frontmatter.Post(body)
    post.metadata.update(metadata)
    return frontmatter.dumps(post) + "\n"


def ensure_valid_yaml(metadata: dict[str, Any]) -> None:
    """Validate and sanitize metadata prior to serialization.

    Mutates ``metadata`` in place, coercing dates to ISO strings, and enforces
    non-empty string keys plus a size limit.

    Raises:
        ValueError: If the metadata is not a mapping, contains invalid keys or
            unsupported value types, or exceeds the permitted size.
    """
    if not isinstance(metadata, dict):
        raise ValueError("Frontmatter must be a dictionary of key/value pairs.")

    def _sanitize(value: Any, path: str) -> Any:
        if isinstance(value, (str, int, float, bool)) or value is None:
            return value
        if isinstance(value, (datetime, date)):
            return value.isoformat()
        if isinstance(value, (list, tuple)):
            return [_sanitize(item, f"{path}[{index}]") for index, item in enumerate(value)]
        if isinstance(value, Mapping):
            nested: dict[str, Any] = {}
            for sub_key, sub_value in value.items():
                if not isinstance(sub_key, str) or not sub_key.strip():
                    raise ValueError(f"Frontmatter key '{path}.{sub_key}' must be a non-empty string.")
                nested[sub_key] = _sanitize(sub_value, f"{path}.{sub_key}")
            return nested
        raise ValueError(f"Frontmatter field '{path}' uses unsupported type '{type(value).__name__}'.")

    sanitized: dict[str, Any] = {}
    for key, value in metadata.items():
        if not isinstance(key, str) or not key.strip():
            raise ValueError("Frontmatter keys must be non-empty strings.")
        sanitized[key] = _sanitize(value, key)

    try:
        dumped = yaml.safe_dump(sanitized, sort_keys=False)
    except yaml.YAMLError as exc:
        raise ValueError(f"Frontmatter cannot be serialized to YAML: {exc}") from exc

    if len(dumped.encode("utf-8")) > MAX_FRONTMATTER_BYTES:
        raise ValueError(f"Frontmatter exceeds maximum size of {MAX_FRONTMATTER_BYTES // 1024}KB.")

    metadata.clear()
    metadata.update(sanitized)


def load_document(filesystem: VaultFilesystem, path: Path) -> ParsedDocument:
    """Read ``path`` through the filesystem layer and parse it.

    Raises:
        FileNotFoundError: If the document does not exist.
        UnicodeDecodeError: If the document is not UTF-8 text.
    """
    return parse_document(filesystem.read_text(path))
