"""Precognitive HTTP client: validate a subset of inputs before committing a request."""

from precognition.abort import AbortController, AbortRegistry, AbortSignal
from precognition.client import ClientContext, PrecognitionClient, create_client
from precognition.config import UNSET, RequestConfig, merge_config
from precognition.errors import (
    ConfigError,
    PrecognitionError,
    ProtocolViolationError,
    RequestCancelledError,
)
from precognition.helpers import resolve_method, resolve_url, to_simple_validation_errors
from precognition.transport import HttpxTransport, Transport

__version__ = "0.1.0"

__all__ = [
    "UNSET",
    "AbortController",
    "AbortRegistry",
    "AbortSignal",
    "ClientContext",
    "ConfigError",
    "HttpxTransport",
    "PrecognitionClient",
    "PrecognitionError",
    "ProtocolViolationError",
    "RequestCancelledError",
    "RequestConfig",
    "Transport",
    "__version__",
    "create_client",
    "merge_config",
    "resolve_method",
    "resolve_url",
    "to_simple_validation_errors",
]
