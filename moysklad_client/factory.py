"""
Factory for creating MoySklad client instances with proper initialization.
"""

from __future__ import annotations

from typing import Any

from moysklad_client.auth import Auth, BasicAuth, TokenAuth
from moysklad_client.clients.api_client import ApiClient
from moysklad_client.config import ClientOptions, ConfigManager
from moysklad_client.exceptions import ConfigurationError


class MoyskladClientFactory:
    """Factory for creating properly initialized MoySklad API clients."""

    @staticmethod
    def create_from_config(
        config_manager: ConfigManager,
        *,
        options: ClientOptions | None = None,
        **kwargs: Any,
    ) -> ApiClient:
        """
        Create an ApiClient from the credentials a ConfigManager resolves.

        Args:
            config_manager: ConfigManager instance used to load credentials
            options: Optional transport and request-core settings
            **kwargs: Passed through to ``ApiClient`` (transport, clock, sleep)

        Returns:
            Initialized ApiClient

        Raises:
            ConfigurationError: If credentials are missing or invalid
        """
        auth = config_manager.load_credentials()
        return MoyskladClientFactory.create_from_auth(auth, options=options, **kwargs)

    @staticmethod
    def create_from_auth(
        auth: Auth,
        *,
        options: ClientOptions | None = None,
        **kwargs: Any,
    ) -> ApiClient:
        """
        Create an ApiClient directly from credentials.

        Raises:
            ConfigurationError: If required credentials are missing
        """
        if isinstance(auth, TokenAuth):
            if not auth.token:
                raise ConfigurationError("Access token must not be empty")
        elif isinstance(auth, BasicAuth):
            if not auth.login or not auth.password:
                raise ConfigurationError("Login and password are required")
        else:
            raise ConfigurationError(f"Unsupported credentials type {type(auth).__name__}")

        return ApiClient(auth, options=options, **kwargs)
