from pathlib import Path

import pytest

from tam_filesystem.core.filesystem_operations import VaultFilesystem
from tam_filesystem.data_models import VaultConfig


@pytest.fixture
def vault(tmp_path):
    """Empty vault with the default prompts, tasks and templates folders."""
    root = (tmp_path / "vault").resolve()
    (root / "tasks" / "prompts").mkdir(parents=True)
    (root / "utilities" / "templates").mkdir(parents=True)
    return root


@pytest.fixture
def config(vault):
    return VaultConfig(allowed_directories=(vault,))


@pytest.fixture
def filesystem(config):
    return VaultFilesystem(config.allowed_directories, config.allowed_extensions)


@pytest.fixture
def write_note(vault):
    """Write ``content`` to a vault-relative path and return the absolute path."""

    def _write(relative: str, content: str) -> Path:
        path = vault / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write
