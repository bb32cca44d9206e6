"""HTTP client adapters for the MoySklad API."""

from __future__ import annotations

__all__ = ["ApiClient"]

from .api_client import ApiClient
