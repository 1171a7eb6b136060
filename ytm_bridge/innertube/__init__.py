"""
YouTube Music innertube client.

Modules:
    models       - Track, Playlist, AccountInfo, Diagnostics, CollectionResult
    credentials  - Cookie cleanup, SAPISIDHASH signing, request headers
    executor     - HTTP POSTs with client-version and account-index fallback
    extractor    - Schema-tolerant parsing of renderer trees
    paginator    - Continuation-token pagination with guards and fallbacks
    dispatcher   - Request validation and action routing

Usage:
    from ytm_bridge.innertube import Dispatcher

    status, envelope = Dispatcher().handle_request({
        "action": "list_playlists",
        "cookies": cookie_header,
    })
"""

from ytm_bridge.innertube.credentials import (
    CredentialBundle,
    build_auth_user_candidates,
    build_headers,
    clean_cookies,
    compute_signature,
    derive_credentials,
)
from ytm_bridge.innertube.dispatcher import Dispatcher, parse_limit
from ytm_bridge.innertube.executor import InnertubeClient, Outcome, OutcomeKind, first_success
from ytm_bridge.innertube.extractor import (
    dedupe_tracks,
    extract_continuation_token,
    parse_tracks,
)
from ytm_bridge.innertube.models import (
    AccountInfo,
    CollectionResult,
    Diagnostics,
    Playlist,
    Track,
)
from ytm_bridge.innertube.paginator import PaginationEngine

__all__ = [
    # Credentials
    "CredentialBundle",
    "clean_cookies",
    "derive_credentials",
    "compute_signature",
    "build_headers",
    "build_auth_user_candidates",
    # Executor
    "InnertubeClient",
    "Outcome",
    "OutcomeKind",
    "first_success",
    # Extractor
    "parse_tracks",
    "dedupe_tracks",
    "extract_continuation_token",
    # Pagination
    "PaginationEngine",
    # Dispatcher
    "Dispatcher",
    "parse_limit",
    # Models
    "Track",
    "Playlist",
    "AccountInfo",
    "Diagnostics",
    "CollectionResult",
]
