"""Process-scoped services shared by the MCP tool wrappers."""

from dataclasses import dataclass, field
from typing import Optional

from mcp.server.fastmcp import Context

from tam_filesystem.core.filesystem_operations import VaultFilesystem
from tam_filesystem.core.security_operations import RateLimiter
from tam_filesystem.data_models import VaultConfig

LOCAL_SESSION_KEY = "local"


@dataclass
class VaultServices:
    """Everything a tool call needs, built once per server process."""

    config: VaultConfig
    filesystem: VaultFilesystem
    rate_limiter: RateLimiter = field(default_factory=RateLimiter)


def build_services(config: VaultConfig, rate_limiter: Optional[RateLimiter] = None) -> VaultServices:
    """Construct the filesystem layer and rate limiter for ``config``."""
    return VaultServices(
        config=config,
        filesystem=VaultFilesystem(config.allowed_directories, config.allowed_extensions),
        rate_limiter=rate_limiter or RateLimiter(),
    )


# Bound by run_server() for the lifetime of the hosting process
_BOUND_SERVICES: Optional[VaultServices] = None


def bind_services(services: Optional[VaultServices]) -> None:
    """Install (or clear, with ``None``) the services used by tool calls."""
    global _BOUND_SERVICES
    _BOUND_SERVICES = services


def get_services() -> VaultServices:
    """Return the bound services.

    Raises:
        RuntimeError: If the server was started without binding services.
    """
    if _BOUND_SERVICES is None:
        raise RuntimeError("Server services are not configured; start the server with run_server().")
    return _BOUND_SERVICES


def get_session_key(ctx: Optional[Context]) -> str:
    """Produce a stable per-session key for rate limiting.

    Args:
        ctx: The request context supplied by FastMCP, if any.

    Returns:
        A string derived from the underlying session object identity, or
        ``"local"`` when no context is available.
    """
    if ctx is None:
        return LOCAL_SESSION_KEY
    return str(id(ctx.session))


def acquire_services(ctx: Optional[Context]) -> VaultServices:
    """Return the bound services after charging the caller's rate limit.

    Raises:
        SecurityError: With code ``rate_limited`` when the session is over its limit.
    """
    services = get_services()
    services.rate_limiter.check(get_session_key(ctx))
    return services
