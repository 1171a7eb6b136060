"""
Exception classes for ytm-bridge.

This module defines all custom exceptions used throughout the application.
Each exception is designed to provide a clear, actionable error message
and to distinguish between "bad input" and "execution failure".

Exception Hierarchy:
    YtmBridgeError (base)
        ConfigError - Configuration file issues
        ValidationError - Caller-supplied input fails a precondition
            EmptyCredentialError - Cookie text is empty after cleanup
        UpstreamError - Non-2xx response from YouTube Music
        TransportError - Network-level failure before a response arrived

Retry Classification:
    Only errors whose message contains "invalid_argument" or
    "invalid argument" (case-insensitive) are retried, and only along the
    client-version and account-index axes. See is_invalid_argument().
"""


INVALID_ARGUMENT_MARKERS = ("invalid_argument", "invalid argument")


class YtmBridgeError(Exception):
    """
    Base exception for all ytm-bridge errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch all ytm-bridge errors with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., endpoint, status).

    Example:
        try:
            dispatcher.dispatch(request)
        except YtmBridgeError as e:
            logger.error(f"Request failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the caller.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'endpoint': innertube endpoint involved in the error
                     - 'field': request field that failed validation
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(YtmBridgeError):
    """
    Raised when there's an issue with the configuration file.

    Common causes:
        - An explicit config path does not exist
        - config.yaml has invalid YAML syntax
        - A section is not a mapping
        - Invalid field values (e.g., max_pages <= 0, empty client_versions)

    Example:
        raise ConfigError(
            "'pagination.max_pages' must be a positive integer",
            details={'field': 'pagination.max_pages', 'value': 0}
        )
    """
    pass


class ValidationError(YtmBridgeError):
    """
    Raised when caller-supplied input fails a precondition.

    Validation errors are never retried and are surfaced verbatim to the
    caller as a client error (HTTP 400 class).

    Common causes:
        - Missing or empty cookies
        - Missing search query, videoId, playlistId or setVideoId
        - Malformed videoId
        - Unknown action name
    """
    pass


class EmptyCredentialError(ValidationError):
    """Raised when the cookie text is empty after cleanup."""
    pass


class UpstreamError(YtmBridgeError):
    """
    Raised when YouTube Music answers with a non-2xx status.

    The upstream status code and body text are folded into the message so
    that the invalid-argument substring test can see them.

    Attributes:
        status: HTTP status code returned by the upstream.
        body: Raw response body text (may be empty).

    Example:
        raise UpstreamError(
            400,
            '{"error": {"status": "INVALID_ARGUMENT"}}',
            details={'endpoint': 'browse'}
        )
    """

    def __init__(
        self,
        status: int,
        body: str,
        message: str | None = None,
        details: dict | None = None
    ) -> None:
        """
        Initialize the upstream error.

        Args:
            status: HTTP status code.
            body: Response body text.
            message: Optional override for the default
                     "YouTube Music error ({status}): {body}" message.
            details: Optional dictionary with additional context.
        """
        super().__init__(
            message or f"YouTube Music error ({status}): {body}",
            details
        )
        self.status = status
        self.body = body


class TransportError(YtmBridgeError):
    """
    Raised when the HTTP request itself failed (DNS, TLS, connection reset,
    undecodable JSON).

    Treated as retryable only if its message passes the invalid-argument
    substring test; otherwise it propagates immediately.
    """
    pass


def is_invalid_argument(error: BaseException) -> bool:
    """
    Check whether an error belongs to the retryable "invalid argument" class.

    The upstream reports malformed-request rejections with varying phrasing,
    so this is a case-insensitive substring match on the message rather than
    a structured error code.

    Args:
        error: Any exception.

    Returns:
        True if the message contains "invalid_argument" or "invalid argument".
    """
    message = str(error).lower()
    return any(marker in message for marker in INVALID_ARGUMENT_MARKERS)
