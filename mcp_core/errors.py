"""
Error taxonomy for the MCP core.

- NotFoundError: missing session or agent (fails the specific call only)
- ValidationError: malformed message
- ExternalServiceError: LLM or store failure
- ConfigurationError: fatal setup problem (e.g. no general assistant registered)
"""

from typing import Any, Optional


class MCPError(Exception):
    """Base error carrying a stable code and optional details."""

    code: str = "MCP_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class NotFoundError(MCPError):
    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            f"{resource.capitalize()} not found: {identifier}",
            {"resource": resource, "id": identifier},
        )
        self.resource = resource
        self.identifier = identifier


class ValidationError(MCPError):
    code = "VALIDATION_ERROR"


class ExternalServiceError(MCPError):
    code = "EXTERNAL_SERVICE_ERROR"

    def __init__(
        self,
        message: str,
        service: str,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, {"service": service, **(details or {})})
        self.service = service


class ConfigurationError(MCPError):
    code = "CONFIGURATION_ERROR"


__all__ = [
    "MCPError",
    "NotFoundError",
    "ValidationError",
    "ExternalServiceError",
    "ConfigurationError",
]
