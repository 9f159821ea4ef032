"""External API adapters."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when a tool is invoked that the deployment is not configured to run."""

    def __init__(self, code: str, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
