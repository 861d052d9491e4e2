"""Rules content lookup (D&D 5e API)."""

from rolltables.content_loader.dnd5e_client import (
    Dnd5eApiClient,
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    ENDPOINTS,
    endpoint_for,
)

__all__ = [
    "Dnd5eApiClient",
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "ENDPOINTS",
    "endpoint_for",
]
