"""Configuration loading for allowed directories and vault settings."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Sequence

import yaml

from tam_filesystem.constants import ALLOWED_EXTENSIONS, CONFIG_FILENAMES
from tam_filesystem.data_models import VaultConfig

logger = logging.getLogger(__name__)


def _normalize_directories(allowed_directories: Sequence[str | Path]) -> tuple[Path, ...]:
    directories: list[Path] = []
    for raw in allowed_directories:
        candidate = Path(raw).expanduser()
        try:
            candidate = candidate.resolve(strict=False)
        except RuntimeError:
            # resolve can raise on symlink loops; fall back to expanded path
            pass
        if candidate not in directories:
            directories.append(candidate)
    return tuple(directories)


def _find_config_file(directories: Sequence[Path]) -> Optional[tuple[Path, dict[str, Any]]]:
    """Return the first readable vault config file found in ``directories``."""
    for directory in directories:
        for filename in CONFIG_FILENAMES:
            config_path = directory / filename
            if not config_path.is_file():
                continue
            try:
                raw_config = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
            except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
                logger.warning("Failed to parse config file %s: %s", config_path, exc)
                continue
            if not isinstance(raw_config, dict):
                logger.warning("Ignoring config file %s: top level must be a mapping", config_path)
                continue
            logger.info("Loaded vault config from %s", config_path)
            return config_path, raw_config
    return None


def _section(raw_config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw_config.get(name)
    return value if isinstance(value, Mapping) else {}


def _pick(section: Mapping[str, Any], key: str, expected: type | tuple[type, ...], fallback: Any) -> Any:
    value = section.get(key)
    if value is None:
        return fallback
    if isinstance(value, expected) and not (isinstance(value, bool) and expected is not bool):
        return value
    logger.warning("Ignoring config value %r for '%s': unexpected type", value, key)
    return fallback


def load_vault_config(allowed_directories: Sequence[str | Path]) -> VaultConfig:
    """Build the server configuration for the given allowed directories.

    Defaults are merged with the first ``.tam-filesystem-mcp.json`` (or
    ``.yaml``) file found in any allowed directory. The file is parsed with
    ``yaml.safe_load``, which also accepts JSON.

    Args:
        allowed_directories: Directories the server may access. The first one
            is the vault root used to resolve vault-relative paths.

    Returns:
        A fully populated :class:`VaultConfig`.

    Raises:
        ValueError: If no directories are supplied.
    """
    directories = _normalize_directories(allowed_directories)
    if not directories:
        raise ValueError("At least one allowed directory must be provided.")

    defaults = VaultConfig(allowed_directories=directories, allowed_extensions=ALLOWED_EXTENSIONS)

    found = _find_config_file(directories)
    if found is None:
        logger.info("No vault config file found, using defaults")
        return defaults

    _, raw_config = found
    paths = _section(raw_config, "paths")
    features = _section(raw_config, "features")
    search = _section(raw_config, "search")
    variables = _section(raw_config, "variables")
    vault = _section(raw_config, "vault")
    number = (int, float)

    config = VaultConfig(
        allowed_directories=directories,
        prompts_path=_pick(paths, "prompts", str, defaults.prompts_path) or defaults.prompts_path,
        tasks_path=_pick(paths, "tasks", str, defaults.tasks_path) or defaults.tasks_path,
        templates_path=_pick(paths, "templates", str, defaults.templates_path) or defaults.templates_path,
        enable_obsidian_features=_pick(features, "obsidianFeatures", bool, defaults.enable_obsidian_features),
        cache_prompts=_pick(features, "cachePrompts", bool, defaults.cache_prompts),
        templater_lite=_pick(features, "templaterLite", bool, defaults.templater_lite),
        wikilink_resolution=_pick(features, "wikilinkResolution", bool, defaults.wikilink_resolution),
        max_search_results=int(_pick(search, "maxResults", int, defaults.max_search_results)) or defaults.max_search_results,
        fuzzy_threshold=float(_pick(search, "fuzzyThreshold", number, defaults.fuzzy_threshold)),
        strict_variables=_pick(variables, "strictValidation", bool, defaults.strict_variables),
        default_date_format=_pick(variables, "defaultDateFormat", str, defaults.default_date_format)
        or defaults.default_date_format,
        prompt_fuzzy_match_threshold=float(
            _pick(search, "promptFuzzyMatchThreshold", number, defaults.prompt_fuzzy_match_threshold)
        ),
        prompt_content_match_threshold=float(
            _pick(search, "promptContentMatchThreshold", number, defaults.prompt_content_match_threshold)
        ),
        prompt_suggestion_threshold=float(
            _pick(search, "promptSuggestionThreshold", number, defaults.prompt_suggestion_threshold)
        ),
        allowed_extensions=defaults.allowed_extensions,
        vault_name=_pick(vault, "name", str, None),
    )

    logger.info("Vault: %s", config.vault_name or "unnamed")
    logger.info("Prompts path: %s", config.prompts_path)
    logger.info("Tasks path: %s", config.tasks_path)
    logger.info("Templates path: %s", config.templates_path)
    return config
