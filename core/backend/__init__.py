"""Backend gateway package for PromptHub.

Updates:
  v0.1.0 - 2026-10-06 - Expose gateway protocol, Supabase gateway, and process accessor.
"""

from .accessor import (
    create_backend_gateway,
    get_backend_gateway,
    reset_backend_gateway,
    validate_backend_config,
)
from .base import (
    AuthSession,
    AuthSubscription,
    BackendGateway,
    GatewayError,
    GatewayPermissionError,
    MalformedRowError,
    NotAuthenticatedError,
    OAuthRedirect,
    is_permission_denied,
)
from .supabase_gateway import SupabaseGateway

__all__ = [
    "AuthSession",
    "AuthSubscription",
    "BackendGateway",
    "GatewayError",
    "GatewayPermissionError",
    "MalformedRowError",
    "NotAuthenticatedError",
    "OAuthRedirect",
    "SupabaseGateway",
    "create_backend_gateway",
    "get_backend_gateway",
    "is_permission_denied",
    "reset_backend_gateway",
    "validate_backend_config",
]
