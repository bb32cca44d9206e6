"""
Authentication modes accepted by the MoySklad API.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class TokenAuth:
    """Access token issued for a user or a solution."""

    token: str

    def __repr__(self) -> str:
        return "TokenAuth(token='***')"


@dataclass(frozen=True, slots=True)
class BasicAuth:
    """Login/password pair sent as HTTP basic credentials."""

    login: str
    password: str

    def __repr__(self) -> str:
        return f"BasicAuth(login={self.login!r}, password='***')"


Auth = Union[TokenAuth, BasicAuth]


def auth_header(auth: Auth) -> str:
    """Build the ``Authorization`` header value for ``auth``."""

    if isinstance(auth, TokenAuth):
        return f"Bearer {auth.token}"
    if isinstance(auth, BasicAuth):
        raw = f"{auth.login}:{auth.password}".encode("utf-8")
        return f"Basic {base64.b64encode(raw).decode('ascii')}"
    raise TypeError(f"Unsupported auth type {type(auth)!r}.")
