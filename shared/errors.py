"""
Shared error handling for the Bridge Gateway.

Every error raised towards a client carries an HTTP status and renders to a
JSON body with at least an ``error`` field.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Standard error response format."""

    model_config = ConfigDict(extra="allow")

    error: str
    message: Optional[str] = None


class GatewayError(Exception):
    """Base exception for Bridge Gateway services."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(error=self.code, message=self.message, **self.details)


class MissingParameterError(GatewayError):
    """A required request parameter was not supplied."""

    def __init__(self, message: str = "parameter is required", details: Optional[Dict[str, Any]] = None):
        super().__init__("missing_parameter", message, 400, details)


class MissingAliasError(MissingParameterError):
    """No alias could be read from the request."""

    def __init__(self, message: str = "alias is required", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class EmptyRegistryError(GatewayError):
    """The registry was asked for every alias but lists none."""

    def __init__(self, message: str = "registry has no audiences", details: Optional[Dict[str, Any]] = None):
        super().__init__("empty_registry", message, 404, details)


class ForbiddenError(GatewayError):
    """Privileged operation attempted without a valid credential."""

    def __init__(self, message: str = "forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__("forbidden", message, 403, details)


class UpstreamFailureError(GatewayError):
    """The bridge answered with a non-success status or could not be reached."""

    def __init__(
        self,
        message: str = "bridge failed",
        status: Optional[int] = None,
        source: Any = None,
        details: Optional[Dict[str, Any]] = None,
        code: str = "bridge_failed",
    ):
        payload: Dict[str, Any] = {"status": status, "source": source}
        payload.update(details or {})
        super().__init__(code, message, 502, payload)

    @property
    def upstream_status(self) -> Optional[int]:
        return self.details.get("status")


class UpstreamShapeError(UpstreamFailureError):
    """The bridge answered, but the body carries none of the success signals."""


class BridgeHtmlError(UpstreamShapeError):
    """The bridge answered with something other than JSON."""

    def __init__(self, status: Optional[int], content_type: str, body_preview: str):
        super().__init__(
            message="bridge returned a non-JSON response",
            status=status,
            details={"contentType": content_type, "bodyPreview": body_preview},
            code="bridge_html",
        )
        self.details.pop("source", None)


class RegistryLoadError(GatewayError):
    """The registry document is missing, unreadable or malformed."""

    def __init__(self, message: str = "registry could not be loaded", details: Optional[Dict[str, Any]] = None):
        super().__init__("registry_load_error", message, 500, details)


class InternalError(GatewayError):
    """Unexpected failure; only the message reaches the client."""

    def __init__(self, message: str = "Internal server error", details: Optional[Dict[str, Any]] = None):
        super().__init__("internal_error", message, 500, details)
