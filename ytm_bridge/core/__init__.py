"""
Core module for ytm-bridge.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - lazy: At-most-once lazy initialisation
    - logger: Logging system with console and file outputs

Usage:
    from ytm_bridge.core import (
        Config, load_config, get_config,
        setup_logging, get_logger,
        YtmBridgeError, ValidationError, UpstreamError
    )
"""

from ytm_bridge.core.config import (
    AuthConfig,
    Config,
    InnertubeConfig,
    LoggingConfig,
    NetworkConfig,
    PaginationConfig,
    get_config,
    load_config,
    reset_config,
)
from ytm_bridge.core.exceptions import (
    ConfigError,
    EmptyCredentialError,
    TransportError,
    UpstreamError,
    ValidationError,
    YtmBridgeError,
    is_invalid_argument,
)
from ytm_bridge.core.lazy import LazyValue
from ytm_bridge.core.logger import (
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "InnertubeConfig",
    "PaginationConfig",
    "AuthConfig",
    "NetworkConfig",
    "LoggingConfig",
    "load_config",
    "get_config",
    "reset_config",
    # Exceptions
    "YtmBridgeError",
    "ConfigError",
    "ValidationError",
    "EmptyCredentialError",
    "UpstreamError",
    "TransportError",
    "is_invalid_argument",
    # Lazy
    "LazyValue",
    # Logger
    "setup_logging",
    "get_logger",
    "shutdown_logging",
]
