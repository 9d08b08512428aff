"""Central application exception hierarchy.

This module defines the base application exception ``AppError`` and the
specialized subclasses used by the deploy pipeline to represent its failure
modes: configuration problems, remote API errors (client side, server side and
transport level), malformed responses, image download failures, fatal
deployment aborts and rollback failures. Using a centralized hierarchy makes
error handling and testing consistent across the client, the uploaders and the
orchestrator.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence


class AppError(Exception):
    """Base exception for all application-level errors.

    Parameters
    ----------
    code : str
        Machine-readable error code (e.g., ``'CLIENT_ERROR'``).
    message : str
        Human-readable message describing the error.
    context : Mapping[str, Any] | None, optional
        Optional structured context for logging.
    transient : bool, optional
        Whether the error is temporary and may be retried.

    Attributes
    ----------
    code : str
        Stable machine-readable error code.
    message : str
        Human-readable message.
    context : dict
        Structured, non-sensitive context for logging.
    transient : bool
        True if the error is transient.

    Examples
    --------
    >>> e = AppError('CODE', 'message', context={'k': 'v'}, transient=True)
    >>> e.code
    'CODE'
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = dict(context or {})
        self.transient = bool(transient)

    def __str__(self) -> str:
        """Return a compact string representation of the error."""
        return f"{self.code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Return a log-safe dictionary representation of the error."""
        return {
            "error_code": self.code,
            "message": self.message,
            "context": self.context,
            "is_transient": self.transient,
        }


class ConfigurationError(AppError):
    """Raised for invalid or missing configuration."""

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(
            "CONFIGURATION_ERROR", message, context=context, transient=False
        )


class RemoteAPIError(AppError):
    """Base class for non-2xx answers from the remote REST API.

    Parameters
    ----------
    code : str
        Local machine-readable error code.
    message : str
        Message reported by the remote system (or a synthesized one).
    status : int
        HTTP status code of the failed response.
    endpoint : str
        The API path that was requested.
    remote_code : str
        Error code reported by the remote system, e.g. ``'rest_forbidden'``.
    transient : bool
        Whether the failure may succeed on retry.
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        status: int,
        endpoint: str,
        remote_code: str,
        transient: bool,
    ) -> None:
        super().__init__(
            code,
            message,
            context={
                "status": status,
                "endpoint": endpoint,
                "remote_code": remote_code,
            },
            transient=transient,
        )
        self.status = status
        self.endpoint = endpoint
        self.remote_code = remote_code


class ClientError(RemoteAPIError):
    """Raised for 4xx responses; the request must be fixed by the caller."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        endpoint: str,
        remote_code: str = "http_error",
    ) -> None:
        super().__init__(
            "CLIENT_ERROR",
            message,
            status=status,
            endpoint=endpoint,
            remote_code=remote_code,
            transient=False,
        )


class ServerError(RemoteAPIError):
    """Raised for 5xx responses once retries are exhausted."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        endpoint: str,
        remote_code: str = "server_error",
    ) -> None:
        super().__init__(
            "SERVER_ERROR",
            message,
            status=status,
            endpoint=endpoint,
            remote_code=remote_code,
            transient=True,
        )


class TransportError(AppError):
    """Raised for network-level failures (DNS, connection, timeout)."""

    def __init__(self, message: str, *, endpoint: str) -> None:
        super().__init__(
            "TRANSPORT_ERROR",
            message,
            context={"endpoint": endpoint},
            transient=True,
        )
        self.endpoint = endpoint


class ResponseFormatError(AppError):
    """Raised when a successful response body cannot be parsed or validated."""

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(
            "RESPONSE_FORMAT_ERROR", message, context=context, transient=False
        )


class DownloadError(AppError):
    """Raised when a source image cannot be fetched."""

    def __init__(self, message: str, *, url: str, status: int | None = None) -> None:
        super().__init__(
            "DOWNLOAD_ERROR",
            message,
            context={"url": url, "status": status},
            transient=False,
        )
        self.url = url
        self.status = status


class FatalDeployError(AppError):
    """Raised when a deployment stage fails in a way that aborts the deployment."""

    def __init__(
        self, message: str, *, context: Mapping[str, Any] | None = None
    ) -> None:
        super().__init__(
            "FATAL_DEPLOY_ERROR", message, context=context, transient=False
        )


class DeploymentNotFoundError(AppError):
    """Raised when a deployment id is unknown to the deployment store."""

    def __init__(self, deployment_id: str) -> None:
        super().__init__(
            "DEPLOYMENT_NOT_FOUND",
            "Deployment not found",
            context={"deployment_id": deployment_id},
            transient=False,
        )
        self.deployment_id = deployment_id


class RollbackError(AppError):
    """Raised when one or more deletions attempted by a rollback failed."""

    def __init__(self, deployment_id: str, failures: Sequence[str]) -> None:
        super().__init__(
            "ROLLBACK_ERROR",
            f"Rollback completed with errors: {', '.join(failures)}",
            context={"deployment_id": deployment_id, "failures": list(failures)},
            transient=False,
        )
        self.deployment_id = deployment_id
        self.failures = list(failures)
