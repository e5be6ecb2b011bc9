"""FastMCP server initialization and command-line entry point."""

import argparse
import logging
from typing import Optional, Sequence

from mcp.server.fastmcp import FastMCP

from tam_filesystem.config import load_vault_config
from tam_filesystem.constants import LOG_LEVEL
from tam_filesystem.session import VaultServices, bind_services, build_services

# Initialize logger
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("tam_filesystem")

# Tool modules are imported in __init__.py to register all @mcp.tool() decorators


def run_server(services: VaultServices) -> None:
    """Bind ``services`` and start the MCP server with stdio transport."""
    bind_services(services)
    config = services.config
    logger.info("Starting tam-filesystem MCP server")
    logger.info("Allowed directories: %s", ", ".join(str(path) for path in config.allowed_directories))
    logger.info("Obsidian features: %s", "enabled" if config.enable_obsidian_features else "disabled")
    logger.info("Templater-lite: %s", "enabled" if config.templater_lite else "disabled")
    mcp.run(transport="stdio")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tam-filesystem-mcp",
        description=(
            "Filesystem MCP server with Obsidian-aware prompt discovery "
            "and task checklist tools."
        ),
    )
    parser.add_argument(
        "directories",
        nargs="+",
        help="Allowed directories. The first one is the vault root.",
    )
    parser.add_argument(
        "--log-level",
        default=LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (logs go to stderr).",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Parse arguments, load the vault configuration and serve."""
    args = build_parser().parse_args(argv)
    logging.getLogger().setLevel(args.log_level)

    config = load_vault_config(args.directories)
    run_server(build_services(config))


if __name__ == "__main__":
    main()
