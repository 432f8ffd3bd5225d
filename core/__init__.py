"""Core service layer for PromptHub.

Updates:
  v0.3.0 - 2026-10-15 - Export client-side search and moderation helpers.
  v0.2.0 - 2026-10-12 - Export notification hub and cache events.
  v0.1.0 - 2026-10-08 - Surface the prompt/session caches and the PromptHub container.
"""

from .backend import (
    AuthSession,
    BackendGateway,
    GatewayError,
    OAuthRedirect,
    SupabaseGateway,
    get_backend_gateway,
    reset_backend_gateway,
)
from .cache import FetchDecision, SingleFlight, is_fresh, needs_fetch
from .exceptions import (
    AuthenticationError,
    AuthPermissionError,
    BackendUnavailableError,
    PermissionDeniedError,
    PromptCacheError,
    PromptCreateError,
    PromptDeleteError,
    PromptFetchError,
    PromptFetchPermissionError,
    PromptHubError,
)
from .factory import PromptHub, build_prompt_hub, get_prompt_hub, reset_prompt_hub
from .notifications import (
    CacheEvent,
    CacheEventKind,
    NotificationCenter,
    NotificationSubscription,
    notification_center,
)
from .profile_merge import email_local_part, merge_user_profile
from .prompt_cache import PromptCache
from .search import (
    collect_tags,
    filter_by_tag,
    pending_prompts,
    prompts_by_author,
    reported_prompts,
    search_prompts,
)
from .session_cache import SessionCache

__all__ = [
    "AuthSession",
    "AuthenticationError",
    "AuthPermissionError",
    "BackendGateway",
    "BackendUnavailableError",
    "CacheEvent",
    "CacheEventKind",
    "FetchDecision",
    "GatewayError",
    "NotificationCenter",
    "NotificationSubscription",
    "OAuthRedirect",
    "PermissionDeniedError",
    "PromptCache",
    "PromptCacheError",
    "PromptCreateError",
    "PromptDeleteError",
    "PromptFetchError",
    "PromptFetchPermissionError",
    "PromptHub",
    "PromptHubError",
    "SessionCache",
    "SingleFlight",
    "SupabaseGateway",
    "build_prompt_hub",
    "collect_tags",
    "email_local_part",
    "filter_by_tag",
    "get_backend_gateway",
    "get_prompt_hub",
    "is_fresh",
    "merge_user_profile",
    "needs_fetch",
    "notification_center",
    "pending_prompts",
    "prompts_by_author",
    "reported_prompts",
    "reset_backend_gateway",
    "reset_prompt_hub",
    "search_prompts",
]
