"""Prompt discovery: exact, alias, fuzzy and content matching across vault folders."""

from __future__ import annotations

import logging
import re
from collections import Counter
from pathlib import Path
from typing import Callable, Optional, Sequence

from tam_filesystem.constants import (
    ALIAS_MATCH_SCORE,
    ALIAS_SUGGESTION_WEIGHT,
    ALTERNATE_EXTENSION,
    DEFAULT_EXTENSION,
    EXACT_MATCH_SCORE,
)
from tam_filesystem.core.filesystem_operations import VaultFilesystem
from tam_filesystem.core.frontmatter_operations import load_document
from tam_filesystem.data_models import DiscoveryResult, VaultConfig
from tam_filesystem.errors import AccessDeniedError, PromptError

logger = logging.getLogger(__name__)

_WORD_SEPARATORS = re.compile(r"[\s\-_]+")
_KNOWN_EXTENSIONS = (".md", ".txt", ".json")


# ==============================================================================
# SCORING
# ==============================================================================


def _normalize_name(value: str) -> str:
    cleaned = value.strip().lower()
    for extension in _KNOWN_EXTENSIONS:
        if cleaned.endswith(extension) and len(cleaned) > len(extension):
            return cleaned[: -len(extension)].strip()
    return cleaned


def _words(value: str) -> list[str]:
    return [word for word in _WORD_SEPARATORS.split(value) if word]


def fuzzy_score(query: str, candidate: str) -> float:
    """Score how closely ``candidate`` (a filename or alias) matches ``query``.

    Both strings are lower-cased, trimmed and stripped of a text extension.
    Equal strings score 1.0. Otherwise the better of substring containment
    (``0.8 * shorter / longer``) and shared-word overlap
    (``0.6 * matched / query words``) is used. When neither applies, the
    sorted-multiset character overlap ratio scores ``0.5 * ratio`` if the
    ratio exceeds 0.4, else 0.

    Returns:
        A score in ``[0, 1]``.
    """
    q = _normalize_name(query)
    c = _normalize_name(candidate)
    if not q or not c:
        return 0.0
    if q == c:
        return 1.0

    score = 0.0
    if q in c:
        score = 0.8 * (len(q) / len(c))
    elif c in q:
        score = 0.8 * (len(c) / len(q))

    query_words = _words(q)
    candidate_words = set(_words(c))
    if query_words:
        matched = sum(1 for word in query_words if word in candidate_words)
        if matched:
            score = max(score, 0.6 * (matched / len(query_words)))

    if score > 0:
        return min(score, 1.0)

    overlap = sum((Counter(q) & Counter(c)).values())
    ratio = overlap / max(len(q), len(c))
    return 0.5 * ratio if ratio > 0.4 else 0.0


def content_score(query: str, title: Optional[str], body: str) -> float:
    """Score a document's title and body against ``query`` (case-insensitive).

    A title containing the query adds ``0.8 * len(query) / len(title)``; each
    body occurrence adds 0.1, capped at 0.5.
    """
    needle = query.strip().lower()
    if not needle:
        return 0.0

    score = 0.0
    if title:
        title_lower = title.lower()
        if needle in title_lower:
            score += 0.8 * (len(needle) / len(title_lower))

    occurrences = body.lower().count(needle)
    score += min(0.5, occurrences * 0.1)
    return score


# ==============================================================================
# STAGES
# ==============================================================================


def _name_variations(name: str) -> list[str]:
    lowered = name.lower()
    variations = [
        name,
        f"{name}{DEFAULT_EXTENSION}",
        f"{name}{ALTERNATE_EXTENSION}",
        lowered,
        f"{lowered}{DEFAULT_EXTENSION}",
        f"{lowered}{ALTERNATE_EXTENSION}",
    ]
    return list(dict.fromkeys(variations))


def find_exact_match(filesystem: VaultFilesystem, directory: Path, name: str) -> Optional[DiscoveryResult]:
    """Return the first filename variation of ``name`` that exists in ``directory``."""
    for variation in _name_variations(name):
        try:
            candidate = filesystem.join(directory, variation)
            info = filesystem.path_info(candidate)
        except AccessDeniedError:
            continue

        if info.exists and info.is_file and filesystem.is_allowed_file_type(candidate):
            return DiscoveryResult(path=candidate, match="exact", score=EXACT_MATCH_SCORE)
    return None


def find_by_alias(filesystem: VaultFilesystem, directory: Path, name: str) -> Optional[DiscoveryResult]:
    """Return the first file whose frontmatter aliases contain ``name`` (case-insensitive)."""
    target = name.strip().lower()
    for path in filesystem.list_allowed_files(directory):
        try:
            document = load_document(filesystem, path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping '%s' during alias search: %s", path, exc)
            continue

        if any(alias.strip().lower() == target for alias in document.aliases):
            return DiscoveryResult(path=path, match="alias", score=ALIAS_MATCH_SCORE)
    return None


def find_fuzzy_match(
    filesystem: VaultFilesystem,
    directory: Path,
    name: str,
    threshold: float,
) -> Optional[DiscoveryResult]:
    """Return the best filename match scoring above ``threshold``."""
    best: Optional[tuple[float, Path]] = None
    for path in filesystem.list_allowed_files(directory):
        score = fuzzy_score(name, path.stem)
        if score > threshold and (best is None or score > best[0]):
            best = (score, path)

    if best is None:
        return None

    score, path = best
    if not filesystem.path_info(path).is_file:
        return None
    return DiscoveryResult(path=path, match="fuzzy", score=score)


def find_by_content(
    filesystem: VaultFilesystem,
    directory: Path,
    name: str,
    threshold: float,
) -> Optional[DiscoveryResult]:
    """Return the file whose title/body best matches ``name`` above ``threshold``."""
    best: Optional[tuple[float, Path]] = None
    for path in filesystem.list_allowed_files(directory):
        try:
            document = load_document(filesystem, path)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping '%s' during content search: %s", path, exc)
            continue

        score = content_score(name, document.title, document.body)
        if score > threshold and (best is None or score > best[0]):
            best = (score, path)

    if best is None:
        return None
    score, path = best
    return DiscoveryResult(path=path, match="content", score=min(score, 1.0))


def _run_stage(
    stage: str,
    directory: Path,
    search: Callable[[], Optional[DiscoveryResult]],
) -> Optional[DiscoveryResult]:
    """Run one discovery stage, treating I/O trouble as "no match"."""
    try:
        return search()
    except (FileNotFoundError, NotADirectoryError):
        logger.debug("Directory '%s' does not exist; skipping %s stage", directory, stage)
        return None
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        logger.warning("%s stage failed in '%s': %s", stage.capitalize(), directory, exc)
        return None


# ==============================================================================
# DISCOVERY
# ==============================================================================


def default_search_paths(config: VaultConfig) -> list[str]:
    return [config.prompts_path, config.templates_path]


def discover_prompt(
    name: str,
    filesystem: VaultFilesystem,
    config: VaultConfig,
    search_paths: Optional[Sequence[str]] = None,
) -> DiscoveryResult:
    """Locate the single best document for ``name``.

    Each directory in ``search_paths`` (default: prompts then templates) runs
    the exact, alias, fuzzy and content stages in that order; the first stage
    to produce a match ends the whole search. Stage order is a hard
    tie-break, not a global best-score search.

    Args:
        name: Prompt name, filename or alias.
        filesystem: Root-scoped filesystem access.
        config: Thresholds and default search paths.
        search_paths: Optional vault-relative (or absolute) directories.

    Returns:
        The chosen :class:`DiscoveryResult`.

    Raises:
        PromptError: ``prompt_not_found`` when every stage in every directory
            came up empty.
        AccessDeniedError: If a search path escapes the allowed directories.
    """
    cleaned = name.strip()
    paths = list(search_paths) if search_paths else default_search_paths(config)
    if not cleaned:
        raise PromptError("prompt_not_found", "Prompt name cannot be empty.", {"search_paths": paths})

    for base_path in paths:
        directory = filesystem.validate_path(base_path)
        stages: list[tuple[str, Callable[[], Optional[DiscoveryResult]]]] = [
            ("exact", lambda: find_exact_match(filesystem, directory, cleaned)),
            ("alias", lambda: find_by_alias(filesystem, directory, cleaned)),
            (
                "fuzzy",
                lambda: find_fuzzy_match(filesystem, directory, cleaned, config.prompt_fuzzy_match_threshold),
            ),
            (
                "content",
                lambda: find_by_content(filesystem, directory, cleaned, config.prompt_content_match_threshold),
            ),
        ]
        for stage, search in stages:
            result = _run_stage(stage, directory, search)
            if result is not None:
                logger.info(
                    "Discovered prompt '%s' at '%s' via %s match (score=%.2f)",
                    cleaned,
                    result.path,
                    result.match,
                    result.score,
                )
                return result

    raise PromptError(
        "prompt_not_found",
        f"Prompt '{cleaned}' not found in search paths",
        {"search_paths": paths},
    )


def suggest_prompts(
    name: str,
    filesystem: VaultFilesystem,
    config: VaultConfig,
    search_paths: Optional[Sequence[str]] = None,
    limit: Optional[int] = None,
) -> list[str]:
    """Rank "did you mean" names for ``name`` across all search paths combined.

    Filenames are scored with :func:`fuzzy_score`; aliases are scored the same
    way and weighted by 0.9 so filenames win ties. Only scores above the
    configured suggestion threshold are kept.
    """
    paths = list(search_paths) if search_paths else default_search_paths(config)
    max_results = limit if limit is not None else config.max_search_results
    scores: dict[str, float] = {}

    def _record(candidate: str, score: float) -> None:
        if score > config.prompt_suggestion_threshold and score > scores.get(candidate, 0.0):
            scores[candidate] = score

    for base_path in paths:
        try:
            directory = filesystem.validate_path(base_path)
            files = filesystem.list_allowed_files(directory)
        except AccessDeniedError as exc:
            logger.warning("Skipping suggestion path '%s': %s", base_path, exc)
            continue
        except OSError as exc:
            logger.debug("Skipping suggestion path '%s': %s", base_path, exc)
            continue

        for path in files:
            _record(path.stem, fuzzy_score(name, path.stem))
            try:
                document = load_document(filesystem, path)
            except (OSError, UnicodeDecodeError) as exc:
                logger.debug("Skipping aliases of '%s': %s", path, exc)
                continue
            for alias in document.aliases:
                _record(alias, fuzzy_score(name, alias) * ALIAS_SUGGESTION_WEIGHT)

    ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    return [candidate for candidate, _ in ranked[:max_results]]
