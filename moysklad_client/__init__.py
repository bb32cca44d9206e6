"""Rate-limited async client core for the MoySklad JSON API."""

from __future__ import annotations

__all__ = [
    "ApiClient",
    "ApiResponseError",
    "AuthenticationError",
    "BasicAuth",
    "BatchGetOptions",
    "BatchResult",
    "ClientOptions",
    "CollectionService",
    "ConfigManager",
    "ConfigurationError",
    "MoyskladClientError",
    "MoyskladClientFactory",
    "NotFoundError",
    "RateLimitExceeded",
    "RetryConfig",
    "TokenAuth",
    "configure_logging",
]

from .auth import BasicAuth, TokenAuth
from .clients.api_client import ApiClient
from .config import BatchGetOptions, ClientOptions, ConfigManager
from .exceptions import (
    ApiResponseError,
    AuthenticationError,
    ConfigurationError,
    MoyskladClientError,
    NotFoundError,
    RateLimitExceeded,
)
from .factory import MoyskladClientFactory
from .logging_config import configure_logging
from .models import BatchResult
from .rate_limit import RetryConfig
from .services.collection_service import CollectionService
