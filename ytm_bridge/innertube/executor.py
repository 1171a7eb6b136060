"""
HTTP request executor for the YouTube Music innertube API.

This module sends JSON POST requests to the innertube endpoints and retries
them along two axes when the upstream rejects a request as malformed:

    Account index (outer)  "0"?, "0", "1", ... "9"
        Client version (inner)  1.20240207.01.00, 1.20240130.01.00, ...

The inner axis is exhausted before the outer one advances. Only errors in
the "invalid argument" class are retried (see is_invalid_argument()); any
other failure stops both axes immediately.

Retry Combinator:
    Each attempt is reduced to a tagged Outcome (SUCCESS, RETRYABLE, FATAL)
    and first_success() walks an ordered list of candidates:
        - SUCCESS: return (candidate, value)
        - FATAL: raise the error now
        - RETRYABLE: remember the error and try the next candidate
    When every candidate was retryable, the last error is raised.

Usage:
    with InnertubeClient(config) as client:
        data, auth_user = client.request_with_auth_fallback(
            "browse", {"browseId": "FEmusic_liked_playlists"}, bundle, ["0", "1"]
        )
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

import requests

from ytm_bridge.core.config import Config, get_config
from ytm_bridge.core.exceptions import (
    TransportError,
    UpstreamError,
    YtmBridgeError,
    is_invalid_argument,
)
from ytm_bridge.core.logger import get_logger
from ytm_bridge.innertube.credentials import CredentialBundle, build_headers


logger = get_logger(__name__)

T = TypeVar("T")
C = TypeVar("C")

CLIENT_NAME = "WEB_REMIX"


class OutcomeKind(Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of one request attempt.

    Attributes:
        kind: SUCCESS, RETRYABLE or FATAL.
        value: The returned value (SUCCESS only).
        error: The raised error (RETRYABLE and FATAL only).
    """
    kind: OutcomeKind
    value: T | None = None
    error: YtmBridgeError | None = None

    @classmethod
    def attempt(cls, call: Callable[[], T]) -> "Outcome[T]":
        """
        Run call() and classify what happened.

        Only UpstreamError and TransportError are classified; anything else
        (including ValidationError) propagates as-is.
        """
        try:
            return cls(OutcomeKind.SUCCESS, value=call())
        except (UpstreamError, TransportError) as e:
            kind = OutcomeKind.RETRYABLE if is_invalid_argument(e) else OutcomeKind.FATAL
            return cls(kind, error=e)


def first_success(
    candidates: Iterable[C],
    call: Callable[[C], T],
    axis: str = "candidate"
) -> tuple[C, T]:
    """
    Try candidates in order until one succeeds.

    Args:
        candidates: Ordered candidate values (client versions, account indexes).
        call: Function performing one attempt with a candidate.
        axis: Name used in log messages.

    Returns:
        Tuple of (winning candidate, its value).

    Raises:
        The first FATAL error, or the last RETRYABLE error once every
        candidate has been tried.
        ValueError: If candidates is empty.
    """
    last_error: YtmBridgeError | None = None

    for candidate in candidates:
        outcome = Outcome.attempt(lambda: call(candidate))
        if outcome.kind is OutcomeKind.SUCCESS:
            return candidate, outcome.value
        if outcome.kind is OutcomeKind.FATAL:
            raise outcome.error
        logger.debug(f"Invalid argument with {axis} {candidate}, trying next")
        last_error = outcome.error

    if last_error is None:
        raise ValueError(f"No {axis} candidates to try")
    raise last_error


def _append_to_message(error: YtmBridgeError, suffix: str) -> YtmBridgeError:
    error.message = f"{error.message}{suffix}"
    error.args = (error.message,)
    return error


class InnertubeClient:
    """
    Blocking client for innertube POST endpoints.

    A client owns its requests.Session unless one is injected, and should be
    closed (or used as a context manager) when done.

    Attributes:
        config: Application configuration (wire constants, timeout).
        session: HTTP session used for every request.
    """

    def __init__(
        self,
        config: Config | None = None,
        session: requests.Session | None = None
    ) -> None:
        self.config = config or get_config()
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    def __enter__(self) -> "InnertubeClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def build_context(self, client_version: str) -> dict[str, Any]:
        """Request context the web client sends for one client version."""
        innertube = self.config.innertube
        return {
            "client": {
                "clientName": CLIENT_NAME,
                "clientVersion": client_version,
                "hl": innertube.hl,
                "gl": innertube.gl,
                "utcOffsetMinutes": 0,
            },
            "user": {
                "lockedSafetyMode": False,
            },
        }

    def _post(
        self,
        endpoint: str,
        payload: dict[str, Any],
        headers: dict[str, str]
    ) -> Any:
        """
        Send one POST request and decode the JSON response.

        Raises:
            TransportError: If the request failed before a response arrived
                            or the response body is not JSON.
            UpstreamError: If the upstream answered with a non-2xx status.
        """
        innertube = self.config.innertube
        url = f"{innertube.base_url}/{endpoint}"

        try:
            response = self.session.post(
                url,
                params={"key": innertube.api_key},
                json=payload,
                headers=headers,
                timeout=self.config.network.request_timeout,
            )
        except requests.RequestException as e:
            raise TransportError(
                str(e),
                details={"endpoint": endpoint, "original_error": str(e)}
            ) from e

        if not response.ok:
            body = response.text or response.reason or ""
            raise UpstreamError(
                response.status_code,
                body,
                details={"endpoint": endpoint}
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON response from {endpoint}: {e}",
                details={"endpoint": endpoint, "original_error": str(e)}
            ) from e

    def request(
        self,
        endpoint: str,
        body: dict[str, Any],
        bundle: CredentialBundle,
        auth_user: str
    ) -> Any:
        """
        Call an endpoint as one account, walking the client-version axis.

        Headers (and therefore the signature) are rebuilt for every attempt.

        Args:
            endpoint: Path under the API root, e.g. "browse" or "like/like".
            body: Request parameters merged after the context.
            bundle: Credentials for the Cookie and Authorization headers.
            auth_user: Account index.

        Returns:
            Decoded JSON response.

        Raises:
            UpstreamError, TransportError: See first_success().
        """
        def send(client_version: str) -> Any:
            headers = build_headers(bundle, auth_user, self.config.innertube)
            headers["X-Youtube-Client-Version"] = client_version
            payload = {"context": self.build_context(client_version), **body}
            logger.debug(f"POST {endpoint} (authUser {auth_user}, client {client_version})")
            return self._post(endpoint, payload, headers)

        _, data = first_success(
            self.config.innertube.client_versions, send, axis="client version"
        )
        return data

    def request_with_auth_fallback(
        self,
        endpoint: str,
        body: dict[str, Any],
        bundle: CredentialBundle,
        auth_users: list[str]
    ) -> tuple[Any, str]:
        """
        Call an endpoint, walking the account-index axis.

        Each account index runs the full client-version sequence before the
        next one is tried.

        Args:
            endpoint: Path under the API root.
            body: Request parameters.
            bundle: Credentials for this call.
            auth_users: Ordered account indexes (see build_auth_user_candidates).

        Returns:
            Tuple of (decoded JSON, account index that succeeded).

        Raises:
            UpstreamError, TransportError: A non-retryable error, or the last
                invalid-argument error with " (authUser tried: ...)" appended
                once every account index has failed.
        """
        candidates = list(dict.fromkeys(u.strip() for u in auth_users if u.strip()))

        try:
            auth_user, data = first_success(
                candidates,
                lambda auth_user: self.request(endpoint, body, bundle, auth_user),
                axis="authUser",
            )
        except (UpstreamError, TransportError) as e:
            if is_invalid_argument(e):
                tried = ", ".join(candidates)
                logger.warning(f"{endpoint}: every account index was rejected ({tried})")
                raise _append_to_message(e, f" (authUser tried: {tried})")
            raise

        logger.debug(f"{endpoint} succeeded with authUser {auth_user}")
        return data, auth_user

    def fetch_continuation(
        self,
        token: str,
        bundle: CredentialBundle,
        auth_user: str,
        browse_id: str | None = None
    ) -> Any:
        """
        Fetch the page behind a continuation token.

        The token is sent alone first. Only if that is rejected as an invalid
        argument and a browse id is known is it resent with the browse id.
        """
        try:
            return self.request("browse", {"continuation": token}, bundle, auth_user)
        except (UpstreamError, TransportError) as e:
            if not browse_id or not is_invalid_argument(e):
                raise
            logger.debug(f"Continuation rejected, retrying with browseId {browse_id}")
            return self.request(
                "browse",
                {"continuation": token, "browseId": browse_id},
                bundle,
                auth_user,
            )
