"""tam-filesystem MCP Server

Filesystem access with Obsidian-aware prompt discovery, templating and
task checklist tracking via Model Context Protocol.
"""

from tam_filesystem.config import load_vault_config
from tam_filesystem.data_models import (
    DiscoveryResult,
    PromptOptions,
    ResolutionOutcome,
    VariableSpec,
    VaultConfig,
)
from tam_filesystem.errors import AccessDeniedError, PromptError, SecurityError
from tam_filesystem.session import VaultServices, build_services
from tam_filesystem.server import mcp, run_server, main

# Import tools to register them with the MCP server
from tam_filesystem import tools  # noqa: F401

__version__ = "1.0.0"
__all__ = [
    "load_vault_config",
    "DiscoveryResult",
    "PromptOptions",
    "ResolutionOutcome",
    "VariableSpec",
    "VaultConfig",
    "AccessDeniedError",
    "PromptError",
    "SecurityError",
    "VaultServices",
    "build_services",
    "mcp",
    "run_server",
    "main",
]
