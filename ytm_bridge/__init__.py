"""
ytm-bridge: Cookie-authenticated YouTube Music client.

This package talks to the private JSON API ("innertube") that the
music.youtube.com web client uses, authenticating with the browser's cookies.
It lists library playlists, collects every track of a playlist across
continuation pages, and performs search, like and playlist-edit actions.

Architecture:
    A request flows through five components:

    Credential Deriver (innertube/credentials.py)
        - Clean pasted cookie text (header dumps, curl, cookies.txt, JSON)
        - Sign requests with SAPISIDHASH

    Request Executor (innertube/executor.py)
        - POST to the innertube endpoints
        - Retry "invalid argument" rejections across client versions,
          then across account indexes

    Schema-Tolerant Extractor (innertube/extractor.py)
        - Find track renderers anywhere in the response tree
        - Fall back through alternative locations for every field

    Pagination Engine (innertube/paginator.py)
        - Follow continuation tokens with page, track and empty-page guards

    Action Dispatcher (innertube/dispatcher.py)
        - Validate requests, route actions, build response envelopes

Modules:
    core/       - Configuration, logging, exceptions, lazy initialisation
    innertube/  - The five components above
    cli.py      - Command-line interface

Usage:
    Command Line:
        ytm-bridge --cookie-file cookies.txt playlists
        ytm-bridge --cookie-file cookies.txt tracks PLxxxx --limit 500
        ytm-bridge --cookie-file cookies.txt like dQw4w9WgXcQ

    Python API:
        from ytm_bridge import Dispatcher

        status, envelope = Dispatcher().handle_request({
            "action": "get_playlist_tracks",
            "cookies": cookie_header,
            "params": {"id": "LM", "limit": 1000},
        })

Configuration:
    Optional config.yaml in the current directory (see core/config.py);
    every value has a default.

Dependencies:
    - requests: HTTP client
    - click / rich-click: CLI framework and colors
    - pyyaml: Configuration file parsing
    - python-dotenv: .env loading
    - colorama: Colored console logging
    - tqdm: Progress bars
"""

__version__ = "0.1.0"
__author__ = "ytm-bridge"
__license__ = "MIT"

# Convenience imports for common usage
from ytm_bridge.core import (
    Config,
    ConfigError,
    TransportError,
    UpstreamError,
    ValidationError,
    YtmBridgeError,
    get_config,
    get_logger,
    load_config,
    setup_logging,
)
from ytm_bridge.innertube import (
    CollectionResult,
    Dispatcher,
    InnertubeClient,
    Playlist,
    Track,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "get_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "YtmBridgeError",
    "ConfigError",
    "ValidationError",
    "UpstreamError",
    "TransportError",
    # Client
    "Dispatcher",
    "InnertubeClient",
    # Models
    "Track",
    "Playlist",
    "CollectionResult",
]
