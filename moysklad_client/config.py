"""
Configuration management utilities for moysklad_client.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from dotenv import dotenv_values

from moysklad_client.auth import Auth, BasicAuth, TokenAuth
from moysklad_client.concurrency import MAX_PARALLEL_REQUESTS
from moysklad_client.exceptions import ConfigurationError
from moysklad_client.rate_limit import RetryConfig

DEFAULT_BASE_URL = "https://api.moysklad.ru/api/remap/1.2"
DEFAULT_USER_AGENT = "moysklad-client-python"

ENV_VAR_MAP = {
    "token": "MOYSKLAD_TOKEN",
    "login": "MOYSKLAD_LOGIN",
    "password": "MOYSKLAD_PASSWORD",
}


@dataclass(slots=True)
class BatchGetOptions:
    """
    Page sizes and parallelism used when fetching whole collections.

    ``expand_limit`` applies to queries with ``expand`` because the API
    caps expanded pages at 100 rows.
    """

    limit: int = 1000
    expand_limit: int = 100
    concurrency_limit: int = 3

    def __post_init__(self) -> None:
        if self.limit < 1 or self.expand_limit < 1:
            raise ConfigurationError("Page limits must be positive integers.")
        if self.concurrency_limit < 1:
            raise ConfigurationError("concurrency_limit must be at least 1.")


@dataclass(slots=True)
class ClientOptions:
    """Transport and request-core settings for ``ApiClient``."""

    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    batch: BatchGetOptions = field(default_factory=BatchGetOptions)
    retry: RetryConfig = field(default_factory=RetryConfig)
    parallel_limit: int = MAX_PARALLEL_REQUESTS
    timeout: float = 60.0


def _credentials_from_mapping(data: Mapping[str, str | None]) -> Auth | None:
    token = data.get("token")
    if token:
        return TokenAuth(token=token)

    login = data.get("login")
    password = data.get("password")
    if login and password:
        return BasicAuth(login=login, password=password)
    if login or password:
        raise ConfigurationError("Both login and password are required for basic auth.")
    return None


class ConfigManager:
    """Loads and persists credentials from environment, .env or disk."""

    def __init__(
        self,
        credential_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
        dotenv_path: Path | None = None,
    ) -> None:
        self._credential_path = credential_path or Path("credentials/moysklad.json")
        self._env = os.environ if env is None else env
        self._dotenv_path = dotenv_path or Path(".env")

    def load_credentials(
        self,
        priority: Sequence[str] = ("env", "dotenv", "file"),
    ) -> Auth:
        """
        Load credentials according to the requested priority order.

        Raises:
            ConfigurationError: when no credentials are available.
        """

        for source in priority:
            if source == "env":
                credentials = self._load_from_env()
            elif source == "dotenv":
                credentials = self._load_from_dotenv()
            elif source == "file":
                credentials = self._load_from_file()
            else:
                raise ValueError(f"Unknown credential source '{source}'.")

            if credentials is not None:
                return credentials

        raise ConfigurationError("MoySklad credentials are not configured.")

    def save_credentials(self, auth: Auth) -> None:
        """Persist credentials to disk, replacing any previous auth mode."""

        if isinstance(auth, TokenAuth):
            data = {"token": auth.token}
        else:
            data = {"login": auth.login, "password": auth.password}

        self._credential_path.parent.mkdir(parents=True, exist_ok=True)
        with self._credential_path.open("w", encoding="utf-8") as fp:
            json.dump(data, fp, indent=2, sort_keys=True)

        # Owner read/write only
        os.chmod(self._credential_path, 0o600)

    def _load_from_env(self) -> Auth | None:
        values = {key: self._env.get(env_name) for key, env_name in ENV_VAR_MAP.items()}
        return _credentials_from_mapping(values)

    def _load_from_dotenv(self) -> Auth | None:
        if not self._dotenv_path.exists():
            return None

        loaded = dotenv_values(self._dotenv_path)
        values = {key: loaded.get(env_name) for key, env_name in ENV_VAR_MAP.items()}
        return _credentials_from_mapping(values)

    def _load_from_file(self) -> Auth | None:
        if not self._credential_path.exists():
            return None

        with self._credential_path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)

        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"Credential file {self._credential_path} did not contain a mapping."
            )

        return _credentials_from_mapping(data)
