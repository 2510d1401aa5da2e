"""Error taxonomy and the normalizer shared by both pipelines.

Every failure that leaves a pipeline is a :class:`GatewayError` carrying an
explicit ``message`` and optional ``details``. Provider adapters translate
SDK and transport exceptions at the call site; :func:`normalize_error` only
has to probe unknown shapes for values nobody anticipated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


class GatewayError(Exception):
    """Base class for failures rendered as ``{error, details}``."""

    status_code: int = 500

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(GatewayError):
    """Malformed or missing input; no provider call has been made."""

    status_code = 400


class UpstreamProviderError(GatewayError):
    """A remote API rejected the request or could not be reached."""


class LocalProcessingError(GatewayError):
    """A subprocess or filesystem operation failed."""


class ConfigurationError(GatewayError):
    """A provider needed by the request has no credentials configured."""


class UnknownError(GatewayError):
    """Failure whose shape was not recognised."""


@dataclass(frozen=True)
class NormalizedError:
    message: str
    details: Any = None

    def as_payload(self) -> dict[str, Any]:
        return {"error": self.message, "details": self.details}


def _lookup(value: Any, key: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(key)
    return getattr(value, key, None)


def _exposed_message(value: Any) -> str | None:
    message = _lookup(value, "message")
    if isinstance(message, str) and message:
        return message
    if isinstance(value, BaseException):
        text = str(value)
        if text:
            return text
    return None


def _probe_details(value: Any) -> Any:
    response = _lookup(value, "response")
    if response is not None:
        data = _lookup(response, "data")
        if data is not None:
            return data
        if isinstance(response, Mapping):
            return response

    error = _lookup(value, "error")
    if error is not None:
        return error

    if isinstance(value, BaseException) or _exposed_message(value) is not None:
        return None
    return value


def normalize_error(caught: Any) -> NormalizedError:
    """Flatten any caught value into the boundary ``{message, details}`` shape."""

    if isinstance(caught, GatewayError):
        return NormalizedError(caught.message, caught.details)

    message = _exposed_message(caught) or UNKNOWN_ERROR_MESSAGE
    return NormalizedError(message, _probe_details(caught))


def to_gateway_error(caught: Any) -> GatewayError:
    """Return ``caught`` if it is already typed, otherwise wrap it as unknown."""

    if isinstance(caught, GatewayError):
        return caught
    normalized = normalize_error(caught)
    return UnknownError(normalized.message, normalized.details)


__all__ = [
    "UNKNOWN_ERROR_MESSAGE",
    "ConfigurationError",
    "GatewayError",
    "LocalProcessingError",
    "NormalizedError",
    "UnknownError",
    "UpstreamProviderError",
    "ValidationError",
    "normalize_error",
    "to_gateway_error",
]
