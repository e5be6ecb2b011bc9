"""Structured error types raised by the prompt and security layers."""

from __future__ import annotations

from typing import Any, Optional


class TamFilesystemError(Exception):
    """Base error carrying a machine-readable ``code`` and optional details."""

    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class PromptError(TamFilesystemError):
    """Prompt discovery or resolution failure.

    Codes: ``prompt_not_found``, ``missing_required_variables``,
    ``invalid_variable_type`` and ``unknown_error``.
    """


class SecurityError(TamFilesystemError):
    """Security-layer rejection (unsafe pattern, rate limit)."""


class AccessDeniedError(SecurityError):
    """A path resolved outside of the allowed directories."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__("path_outside_allowed_directories", message, details)
