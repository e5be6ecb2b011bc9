"""MCP tool definitions for the tam-filesystem server.

This module imports all tool submodules to register them with the MCP server.
Each tool module uses the @mcp.tool() decorator to auto-register its tools.
"""

# Import all tool modules to register their @mcp.tool() decorated functions
from tam_filesystem.tools import filesystem_tools
from tam_filesystem.tools import prompt_tools
from tam_filesystem.tools import task_tools

__all__ = [
    "filesystem_tools",
    "prompt_tools",
    "task_tools",
]
