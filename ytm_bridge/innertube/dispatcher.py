"""
Action dispatcher: the single entry point for callers.

A request is a dictionary:

    {
        "action": "get_playlist_tracks",
        "cookies": "<cookie text in any accepted format>",
        "authUser": "0",
        "params": {"id": "PL...", "limit": 500}
    }

Actions:
    verify                Probe the library, {ok, authUser}
    account_info          {account: {name, email, handle}, authUser}
    list_playlists        {playlists: [...], authUser}
    get_playlist_tracks   {tracks, count, pages, truncated, missingTitle,
                           missingVideoId, diagnostics, authUser}
    search                {videoId, authUser}
    like / remove_like    {success, authUser}
    add_to_playlist       {success, authUser}
    remove_from_playlist  {success, authUser}

dispatch() returns the success envelope or raises. handle_request() turns
errors into {"error": message} with status 400 (ValidationError) or 500.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any

import requests

from ytm_bridge.core.config import Config, get_config
from ytm_bridge.core.exceptions import ValidationError, YtmBridgeError
from ytm_bridge.core.logger import get_logger
from ytm_bridge.innertube.credentials import (
    CredentialBundle,
    build_auth_user_candidates,
    derive_credentials,
)
from ytm_bridge.innertube.executor import InnertubeClient
from ytm_bridge.innertube.extractor import (
    LIBRARY_PLAYLISTS_BROWSE_ID,
    extract_account_info,
    extract_first_video_id,
    extract_playlists,
    is_valid_video_id,
    normalize_browse_id,
    strip_vl_prefix,
)
from ytm_bridge.innertube.models import LIKED_SONGS_ID
from ytm_bridge.innertube.paginator import PaginationEngine, ProgressCallback


logger = get_logger(__name__)

DEFAULT_AUTH_USER = "0"

MISSING_SESSION_COOKIE_MESSAGE = (
    "Missing SAPISID / __Secure-3PAPISID in cookies. "
    "Paste the full cookie header from music.youtube.com."
)

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_limit(raw: Any, ceiling: int) -> int:
    """
    Track limit from a request parameter.

    Numbers and numeric strings ("250", "250 tracks") are accepted. Missing,
    non-numeric, non-finite or non-positive values fall back to the ceiling,
    and larger values are capped at it.
    """
    value = None
    if isinstance(raw, bool):
        value = None
    elif isinstance(raw, int):
        value = raw
    elif isinstance(raw, float):
        value = int(raw) if math.isfinite(raw) else None
    elif isinstance(raw, str):
        match = _LEADING_INT_RE.match(raw)
        if match:
            value = int(match.group(1))

    if value is None or value <= 0:
        return ceiling
    return min(value, ceiling)


def _is_true(value: Any) -> bool:
    return value is True or value == "true"


@dataclass
class ActionCall:
    """Everything a single action handler needs."""
    client: InnertubeClient
    bundle: CredentialBundle
    auth_users: list[str]
    params: dict[str, Any] = field(default_factory=dict)
    on_page: ProgressCallback | None = None

    def request(self, endpoint: str, body: dict[str, Any]) -> tuple[Any, str]:
        return self.client.request_with_auth_fallback(
            endpoint, body, self.bundle, self.auth_users
        )

    def require(self, name: str, message: str | None = None) -> str:
        value = self.params.get(name)
        if not value or not isinstance(value, str):
            raise ValidationError(message or f"Missing {name}.", details={"field": name})
        return value

    def require_video_id(self, name: str = "videoId") -> str:
        video_id = self.require(name)
        if not is_valid_video_id(video_id):
            raise ValidationError("Invalid videoId.", details={"field": name})
        return video_id


class Dispatcher:
    """
    Validates requests and routes them to action handlers.

    Each dispatch opens its own InnertubeClient (and HTTP session, unless one
    was injected) and closes it before returning.
    """

    ACTIONS = {
        "verify": "_verify",
        "account_info": "_account_info",
        "list_playlists": "_list_playlists",
        "get_playlist_tracks": "_get_playlist_tracks",
        "search": "_search",
        "like": "_like",
        "remove_like": "_remove_like",
        "add_to_playlist": "_add_to_playlist",
        "remove_from_playlist": "_remove_from_playlist",
    }

    def __init__(
        self,
        config: Config | None = None,
        session: requests.Session | None = None
    ) -> None:
        self.config = config or get_config()
        self.session = session

    def dispatch(
        self,
        request: dict[str, Any],
        on_page: ProgressCallback | None = None
    ) -> dict[str, Any]:
        """
        Execute one request.

        Args:
            request: {action, cookies, authUser?, params?}.
            on_page: Progress callback forwarded to track collection.

        Returns:
            The action's success envelope.

        Raises:
            ValidationError: If the request fails a precondition.
            UpstreamError, TransportError: If YouTube Music could not be reached
                                           or rejected the request.
        """
        if not isinstance(request, dict):
            raise ValidationError("Request must be a JSON object.")

        cookies = request.get("cookies")
        if not cookies or not isinstance(cookies, str):
            raise ValidationError("Missing cookies in request.", details={"field": "cookies"})

        bundle = derive_credentials(cookies)
        if self.config.auth.require_session_cookie and not bundle.is_signed:
            raise ValidationError(MISSING_SESSION_COOKIE_MESSAGE, details={"field": "cookies"})

        params = request.get("params")
        if not isinstance(params, dict):
            params = {}

        auth_user = str(request.get("authUser") or DEFAULT_AUTH_USER).strip() or DEFAULT_AUTH_USER
        if _is_true(params.get("strictAuthUser")):
            auth_users = [auth_user]
        else:
            auth_users = build_auth_user_candidates(auth_user, self.config.auth.fallback_count)

        action = request.get("action")
        handler_name = self.ACTIONS.get(action) if isinstance(action, str) else None
        if handler_name is None:
            raise ValidationError("Invalid action.", details={"action": action})

        logger.debug(f"Dispatching {action} (authUser candidates: {', '.join(auth_users)})")

        with InnertubeClient(self.config, self.session) as client:
            call = ActionCall(
                client=client,
                bundle=bundle,
                auth_users=auth_users,
                params=params,
                on_page=on_page,
            )
            return getattr(self, handler_name)(call)

    def handle_request(
        self,
        payload: Any,
        on_page: ProgressCallback | None = None
    ) -> tuple[int, dict[str, Any]]:
        """
        dispatch() wrapped into (status, envelope).

        Returns:
            (200, success envelope), (400, {"error"}) for validation errors,
            or (500, {"error"}) for everything else.
        """
        try:
            return 200, self.dispatch(payload, on_page=on_page)
        except ValidationError as e:
            logger.warning(f"Rejected request: {e.message}")
            return 400, {"error": e.message}
        except YtmBridgeError as e:
            logger.error(f"Request failed: {e.message}")
            return 500, {"error": e.message}
        except Exception as e:
            logger.exception("Unexpected error while handling request")
            return 500, {"error": str(e) or "Unknown error."}

    # =========================================================================
    # ACTIONS
    # =========================================================================

    def _verify(self, call: ActionCall) -> dict[str, Any]:
        _, auth_user = call.request("browse", {"browseId": LIBRARY_PLAYLISTS_BROWSE_ID})
        return {"ok": True, "authUser": auth_user}

    def _account_info(self, call: ActionCall) -> dict[str, Any]:
        data, auth_user = call.request("account/account_menu", {})
        return {"account": extract_account_info(data).to_dict(), "authUser": auth_user}

    def _list_playlists(self, call: ActionCall) -> dict[str, Any]:
        data, auth_user = call.request("browse", {"browseId": LIBRARY_PLAYLISTS_BROWSE_ID})
        playlists = extract_playlists(data)
        logger.info(f"Found {len(playlists)} playlists")
        return {"playlists": [p.to_dict() for p in playlists], "authUser": auth_user}

    def _get_playlist_tracks(self, call: ActionCall) -> dict[str, Any]:
        requested_id = call.params.get("id")
        if not requested_id or not isinstance(requested_id, str):
            requested_id = LIKED_SONGS_ID
        browse_id = normalize_browse_id(requested_id)
        max_tracks = parse_limit(call.params.get("limit"), self.config.pagination.max_tracks)

        seed, auth_user = call.request("browse", {"browseId": browse_id})

        engine = PaginationEngine(
            call.client,
            call.bundle,
            auth_user,
            max_tracks=max_tracks,
            max_pages=self.config.pagination.max_pages,
            dedupe=call.params.get("dedupe") is not False,
            on_page=call.on_page,
        )
        result = engine.collect_with_fallbacks(seed, browse_id)
        logger.info(f"Collected {len(result.tracks)} tracks from {result.pages} pages")

        return {**result.to_dict(), "authUser": auth_user}

    def _search(self, call: ActionCall) -> dict[str, Any]:
        query = call.require("query", "Missing search query.")
        data, auth_user = call.request("search", {"query": query})
        return {"videoId": extract_first_video_id(data), "authUser": auth_user}

    def _like(self, call: ActionCall) -> dict[str, Any]:
        video_id = call.require_video_id()
        _, auth_user = call.request("like/like", {"target": {"videoId": video_id}})
        return {"success": True, "authUser": auth_user}

    def _remove_like(self, call: ActionCall) -> dict[str, Any]:
        video_id = call.require_video_id()
        _, auth_user = call.request("like/removelike", {"target": {"videoId": video_id}})
        return {"success": True, "authUser": auth_user}

    def _add_to_playlist(self, call: ActionCall) -> dict[str, Any]:
        playlist_id = call.require("playlistId")
        video_id = call.require_video_id()

        action = {"action": "ACTION_ADD_VIDEO", "addedVideoId": video_id}
        if call.params.get("dedupe") is not False:
            action["dedupeOption"] = "DEDUPE_OPTION_SKIP"

        _, auth_user = call.request("browse/edit_playlist", {
            "playlistId": strip_vl_prefix(playlist_id),
            "actions": [action],
        })
        return {"success": True, "authUser": auth_user}

    def _remove_from_playlist(self, call: ActionCall) -> dict[str, Any]:
        playlist_id = call.require("playlistId")
        set_video_id = call.require("setVideoId", "Missing setVideoId or videoId.")
        video_id = call.require("videoId", "Missing setVideoId or videoId.")
        if not is_valid_video_id(video_id):
            raise ValidationError("Invalid videoId.", details={"field": "videoId"})

        _, auth_user = call.request("browse/edit_playlist", {
            "playlistId": strip_vl_prefix(playlist_id),
            "actions": [{
                "action": "ACTION_REMOVE_VIDEO",
                "setVideoId": set_video_id,
                "removedVideoId": video_id,
            }],
        })
        return {"success": True, "authUser": auth_user}
