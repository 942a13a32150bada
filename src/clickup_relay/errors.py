"""Error taxonomy for the gateway.

Handlers raise these; the application turns them into the JSON envelope
``{"error": ..., "message": ...[, "details": ...]}``.
"""

from typing import Any


class GatewayError(Exception):
    """Base class for every error the gateway reports to its caller."""

    error = "internal_server_error"
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class UnauthorizedError(GatewayError):
    error = "unauthorized"
    status_code = 401


class ValidationError(GatewayError):
    error = "validation_error"
    status_code = 400


class ConfigurationError(GatewayError):
    error = "configuration_error"
    status_code = 400


class ClickUpAPIError(GatewayError):
    """ClickUp answered with a non-2xx status; that status is passed through."""

    error = "clickup_api_error"


class NetworkError(GatewayError):
    """ClickUp was unreachable or answered with something that is not JSON."""

    error = "network_error"
    status_code = 500


class NotFoundError(GatewayError):
    error = "not_found"
    status_code = 404


class InternalServerError(GatewayError):
    error = "internal_server_error"
    status_code = 500
