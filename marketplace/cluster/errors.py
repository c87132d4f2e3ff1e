"""Cluster API errors.

The reconcilers distinguish three outcomes of a cluster call: the object was
not found, the object already exists, or something else went wrong.
:class:`ConflictError` is the optimistic-concurrency flavour of "something
else" and is surfaced to callers like any other failure.
"""

from __future__ import annotations

import typing as typ

_HTTP_NOT_FOUND = 404
_HTTP_CONFLICT = 409


class ClusterAPIError(RuntimeError):
    """Raised when a cluster API call fails.

    Attributes
    ----------
    status_code
        HTTP status code from the API response, if available.
    reason
        Machine-readable reason from the API ``Status`` payload, if available.

    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialise with a message, optional status code, and reason."""
        self.status_code = status_code
        self.reason = reason
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, message: str = "") -> ClusterAPIError:
        """Return an error for a non-2xx HTTP response."""
        detail = f": {message}" if message else ""
        return cls(
            f"Kubernetes API HTTP {status_code}{detail}", status_code=status_code
        )

    @classmethod
    def network_error(cls, detail: str) -> ClusterAPIError:
        """Return an error for transport failures (DNS, connection, TLS)."""
        return cls(f"Kubernetes API network error: {detail}")

    @classmethod
    def malformed_response(cls, kind: str, detail: str) -> ClusterAPIError:
        """Return an error for a response body that does not decode as ``kind``."""
        return cls(f"Kubernetes API returned a malformed {kind}: {detail}")

    @classmethod
    def from_status(
        cls, status_code: int, payload: dict[str, typ.Any] | None
    ) -> ClusterAPIError:
        """Classify an error response using its ``Status`` payload.

        Parameters
        ----------
        status_code
            HTTP status code of the response.
        payload
            Decoded response body, when it was a JSON object.

        Returns
        -------
        ClusterAPIError
            A :class:`NotFoundError`, :class:`AlreadyExistsError`, or
            :class:`ConflictError` when the response maps onto one, otherwise
            a plain :class:`ClusterAPIError`.

        """
        body = payload or {}
        reason = body.get("reason") if isinstance(body.get("reason"), str) else None
        raw_message = body.get("message")
        message = raw_message if isinstance(raw_message, str) else ""
        detail = message or f"Kubernetes API HTTP {status_code}"

        if status_code == _HTTP_NOT_FOUND:
            return NotFoundError(detail, status_code=status_code, reason=reason)
        if status_code == _HTTP_CONFLICT and reason == "AlreadyExists":
            return AlreadyExistsError(detail, status_code=status_code, reason=reason)
        if status_code == _HTTP_CONFLICT:
            return ConflictError(detail, status_code=status_code, reason=reason)
        error = cls.http_error(status_code, message)
        error.reason = reason
        return error


class NotFoundError(ClusterAPIError):
    """Raised when the requested object does not exist."""

    @classmethod
    def for_object(cls, kind: str, name: str, namespace: str) -> NotFoundError:
        """Return an error naming the missing object."""
        return cls(
            f'{kind} "{name}" not found in namespace "{namespace}"',
            status_code=_HTTP_NOT_FOUND,
            reason="NotFound",
        )


class AlreadyExistsError(ClusterAPIError):
    """Raised when creating an object whose name is already taken."""

    @classmethod
    def for_object(cls, kind: str, name: str, namespace: str) -> AlreadyExistsError:
        """Return an error naming the existing object."""
        return cls(
            f'{kind} "{name}" already exists in namespace "{namespace}"',
            status_code=_HTTP_CONFLICT,
            reason="AlreadyExists",
        )


class ConflictError(ClusterAPIError):
    """Raised when an update carries a stale resource version."""

    @classmethod
    def stale_version(cls, kind: str, name: str) -> ConflictError:
        """Return an error for an optimistic-concurrency conflict."""
        return cls(
            f'Operation cannot be fulfilled on {kind} "{name}": '
            "the object has been modified; please apply your changes to the "
            "latest version and try again",
            status_code=_HTTP_CONFLICT,
            reason="Conflict",
        )


class ClusterConfigError(RuntimeError):
    """Raised when cluster client configuration is invalid."""

    @classmethod
    def missing_api_server(cls) -> ClusterConfigError:
        """Return an error when no API server address can be determined."""
        return cls(
            "MARKETPLACE_KUBE_API_SERVER is required outside a cluster "
            "(KUBERNETES_SERVICE_HOST is not set)"
        )

    @classmethod
    def unreadable_token(cls, path: str, detail: str) -> ClusterConfigError:
        """Return an error when the service-account token cannot be read."""
        return cls(f"Cannot read service-account token at {path}: {detail}")

    @classmethod
    def invalid_timeout(cls, value: str) -> ClusterConfigError:
        """Return an error for a non-positive or non-numeric timeout."""
        return cls(f"MARKETPLACE_KUBE_TIMEOUT must be a positive number, got: {value!r}")
