"""
Schema-tolerant extraction of tracks, tokens and metadata from innertube JSON.

YouTube Music responses are deeply nested renderer trees whose shape changes
between client versions, page types and A/B experiments. Instead of following
one fixed path, this module searches the whole tree for recognisable shapes
and falls back through several alternative locations for every field.

Nothing in this module raises on unexpected input: a page that holds no usable
data produces empty results plus diagnostics.

Traversal:
    All tree walks are iterative (explicit stack) and yield containers in
    document order, so arbitrarily deep responses cannot hit the recursion
    limit and results are stable across runs.

Main entry points:
    parse_tracks(root) -> PageParse
    extract_continuation_token(root) -> str | None
    extract_reported_count(root) / extract_metadata_counts(root)
    extract_tabs(root) / pick_preferred_tab(tabs)
    extract_playlists(root) -> list[Playlist]
    extract_first_video_id(root) -> str | None
    extract_account_info(root) -> AccountInfo
"""

import re
from collections.abc import Iterator, Sequence
from typing import Any

from ytm_bridge.innertube.models import (
    KNOWN_RENDERER_KEYS,
    LIKED_MUSIC_TITLE,
    LIKED_SONGS_ID,
    PRIMARY_RENDERER_KEY,
    UNKNOWN_ARTIST,
    AccountInfo,
    Diagnostics,
    PageParse,
    Playlist,
    RendererCandidate,
    Tab,
    Track,
)


VIDEO_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{11}$")

# Accessibility label separators, highest priority first
LABEL_SEPARATORS = (" • ", " · ", " - ")

BYLINE_KEYS = ("shortBylineText", "longBylineText", "ownerText", "subtitle")

HEADER_RENDERER_KEYS = (
    "musicDetailHeaderRenderer",
    "musicEditablePlaylistDetailHeaderRenderer",
    "musicPlaylistHeaderRenderer",
)
HEADER_TEXT_KEYS = ("subtitle", "secondSubtitle", "description")

METADATA_COUNT_KEYS = (
    "totalItems",
    "totalItemCount",
    "numItems",
    "numSongs",
    "songCount",
    "trackCount",
    "videoCount",
)

SHELF_RENDERER_KEYS = ("musicPlaylistShelfRenderer", "musicShelfRenderer")

LIBRARY_PLAYLISTS_BROWSE_ID = "FEmusic_liked_playlists"
PLAYLIST_PREFIX = "VL"
DEFAULT_PLAYLIST_TITLE = "Playlist"
LIKED_MUSIC_SUBTITLE = "Auto-generated"

_REPORTED_COUNT_RE = re.compile(r"([\d,]+)\s+(?:songs?|tracks?|items?|videos?)", re.IGNORECASE)
_NUMBER_RE = re.compile(r"[\d,]+")

_BROWSE_SECTIONS_PATH = (
    "contents", "singleColumnBrowseResultsRenderer", "tabs", 0,
    "tabRenderer", "content", "sectionListRenderer", "contents",
)
_SEARCH_SECTIONS_PATH = (
    "contents", "tabbedSearchResultsRenderer", "tabs", 0,
    "tabRenderer", "content", "sectionListRenderer", "contents",
)


# =============================================================================
# TREE HELPERS
# =============================================================================

def iter_nodes(root: Any) -> Iterator[dict | list]:
    """
    Walk every dict and list under root, depth-first, in document order.

    Scalars are skipped. Uses an explicit stack, so depth is unbounded.
    """
    stack = [root]
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            children = current.values()
        elif isinstance(current, list):
            children = current
        else:
            continue
        yield current
        stack.extend(reversed([c for c in children if isinstance(c, (dict, list))]))


def get_path(value: Any, path: Sequence[str | int]) -> Any:
    """
    Follow a path of dict keys and list indexes.

    Returns:
        The value at the path, or None if any step is missing or has the
        wrong type.
    """
    current = value
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or not -len(current) <= key < len(current):
                return None
            current = current[key]
        else:
            if not isinstance(current, dict):
                return None
            current = current.get(key)
    return current


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _first_string(*values: Any) -> str | None:
    for value in values:
        if isinstance(value, str) and value:
            return value
    return None


def find_first_string(root: Any, key: str) -> str | None:
    """First string value stored under key anywhere in the tree."""
    for node in iter_nodes(root):
        if isinstance(node, dict) and isinstance(node.get(key), str):
            return node[key]
    return None


# =============================================================================
# TEXT
# =============================================================================

def text_from_runs(node: Any) -> str | None:
    """Text of a {simpleText} or {runs: [{text}, ...]} node."""
    if not isinstance(node, dict):
        return None
    if isinstance(node.get("simpleText"), str):
        return node["simpleText"]
    text = "".join(
        run["text"] for run in _as_list(node.get("runs"))
        if isinstance(run, dict) and isinstance(run.get("text"), str)
    )
    return text or None


def text_from_node(node: Any) -> str | None:
    """Text of a node, preferring its accessibility label."""
    if not isinstance(node, dict):
        return None
    label = _as_str(get_path(node, ("accessibility", "accessibilityData", "label")))
    return label or text_from_runs(node)


def title_text(renderer: Any) -> str | None:
    return text_from_node(get_path(renderer, ("title",))) or text_from_node(
        get_path(renderer, ("headline",))
    )


def byline_text(renderer: Any) -> str | None:
    for key in BYLINE_KEYS:
        text = text_from_node(get_path(renderer, (key,)))
        if text:
            return text
    return None


def column_text(renderer: Any, index: int) -> str | None:
    """Text of flex column index, else fixed column index."""
    flex = text_from_node(get_path(renderer, (
        "flexColumns", index, "musicResponsiveListItemFlexColumnRenderer", "text"
    )))
    if flex:
        return flex
    return text_from_node(get_path(renderer, (
        "fixedColumns", index, "musicResponsiveListItemFixedColumnRenderer", "text"
    )))


def split_label(label: str) -> list[str]:
    """
    Split an accessibility label such as "Wildfire • Amber Gray • 3:41".

    The first separator (in LABEL_SEPARATORS order) found in the label is
    used. Empty parts are dropped.

    Returns:
        The non-empty parts, or [label] if none remain.
    """
    for separator in LABEL_SEPARATORS:
        if separator in label:
            parts = [part.strip() for part in label.split(separator)]
            parts = [part for part in parts if part]
            return parts or [label]
    return [label]


# =============================================================================
# RENDERER DISCOVERY
# =============================================================================

def collect_renderer_candidates(root: Any) -> list[RendererCandidate]:
    """
    Find every track-like renderer in a response.

    Two shapes are recognised:
        - A dict holding one of KNOWN_RENDERER_KEYS whose value is a dict
        - An untyped dict with flexColumns plus playlistItemData or
          navigationEndpoint (typed as musicResponsiveListItemRenderer)

    A renderer reachable through several paths is emitted only once.
    """
    results = []
    captured = set()

    for node in iter_nodes(root):
        if not isinstance(node, dict):
            continue

        for key in KNOWN_RENDERER_KEYS:
            renderer = node.get(key)
            if isinstance(renderer, dict) and id(renderer) not in captured:
                captured.add(id(renderer))
                results.append(RendererCandidate(type=key, renderer=renderer))

        if (
            "flexColumns" in node
            and ("playlistItemData" in node or "navigationEndpoint" in node)
            and id(node) not in captured
        ):
            captured.add(id(node))
            results.append(RendererCandidate(type=PRIMARY_RENDERER_KEY, renderer=node))

    return results


# =============================================================================
# IDENTIFIERS
# =============================================================================

def is_valid_video_id(value: Any) -> bool:
    return isinstance(value, str) and VIDEO_ID_PATTERN.match(value) is not None


def extract_video_id(renderer: Any) -> str | None:
    """
    First valid video id from the usual locations of a renderer.

    Checks playlistItemData.videoId, videoId, then
    navigationEndpoint.watchEndpoint.videoId.
    """
    for path in (
        ("playlistItemData", "videoId"),
        ("videoId",),
        ("navigationEndpoint", "watchEndpoint", "videoId"),
    ):
        value = get_path(renderer, path)
        if is_valid_video_id(value):
            return value
    return None


def _find_playlist_edit_endpoint(renderer: Any) -> dict | None:
    for item in _as_list(get_path(renderer, ("menu", "menuRenderer", "items"))):
        endpoint = get_path(
            item, ("menuServiceItemRenderer", "serviceEndpoint", "playlistEditEndpoint")
        ) or get_path(item, ("menuServiceItemRenderer", "playlistEditEndpoint"))
        if isinstance(endpoint, dict):
            return endpoint

    for node in iter_nodes(renderer):
        if isinstance(node, dict) and isinstance(node.get("playlistEditEndpoint"), dict):
            return node["playlistEditEndpoint"]
    return None


def extract_set_video_id(renderer: Any) -> tuple[str | None, str | None]:
    """
    Playlist-entry identifiers needed to remove a row from a playlist.

    Returns:
        Tuple of (setVideoId, removedVideoId), either may be None.
    """
    direct_set = _first_string(
        get_path(renderer, ("playlistItemData", "setVideoId")),
        get_path(renderer, ("playlistItemData", "playlistSetVideoId")),
        get_path(renderer, ("setVideoId",)),
        get_path(renderer, ("playlistSetVideoId",)),
    )
    direct_removed = _first_string(
        get_path(renderer, ("playlistItemData", "removedVideoId")),
        get_path(renderer, ("removedVideoId",)),
    )
    if direct_set or direct_removed:
        return direct_set, direct_removed

    endpoint = _find_playlist_edit_endpoint(renderer)
    if endpoint is not None:
        for action in _as_list(endpoint.get("actions")):
            set_video_id = _first_string(get_path(action, ("setVideoId",)))
            removed_video_id = _first_string(get_path(action, ("removedVideoId",)))
            if set_video_id or removed_video_id:
                return set_video_id, removed_video_id

    return (
        find_first_string(renderer, "setVideoId"),
        find_first_string(renderer, "removedVideoId"),
    )


def extract_playlist_id(renderer: Any) -> str | None:
    direct = _first_string(
        get_path(renderer, ("playlistItemData", "playlistId")),
        get_path(renderer, ("playlistId",)),
    )
    if direct:
        return direct
    endpoint = _find_playlist_edit_endpoint(renderer)
    return _as_str(get_path(endpoint, ("playlistId",)))


# =============================================================================
# TRACKS
# =============================================================================

def _title_and_artist(candidate: RendererCandidate) -> tuple[str | None, str | None]:
    row = candidate.renderer
    if candidate.type == PRIMARY_RENDERER_KEY:
        title = column_text(row, 0) or text_from_node(get_path(row, ("title",))) or title_text(row)
        artist = column_text(row, 1) or column_text(row, 2) or byline_text(row)
    else:
        title = title_text(row)
        artist = byline_text(row)

    if not title or not artist:
        label = _as_str(get_path(row, ("accessibility", "accessibilityData", "label")))
        if label:
            parts = split_label(label)
            if not title:
                title = parts[0]
            if not artist and len(parts) > 1:
                artist = parts[1]

    return title, artist


def parse_tracks(root: Any) -> PageParse:
    """
    Parse every track-like renderer on one page.

    Rows without a title are dropped and counted. Rows without an artist get
    UNKNOWN_ARTIST. Rows without a valid video id are kept and counted.

    Args:
        root: Any JSON value (a full response or a sub-tree).

    Returns:
        PageParse with the tracks in document order and this page's
        diagnostics.
    """
    diagnostics = Diagnostics()
    tracks = []
    missing_title = 0
    missing_video_id = 0

    for candidate in collect_renderer_candidates(root):
        row = candidate.renderer
        diagnostics.record_renderer(candidate.type)

        title, artist = _title_and_artist(candidate)
        if not title:
            missing_title += 1
            diagnostics.record_missing_title(candidate.type)
            continue

        video_id = extract_video_id(row)
        if video_id is None:
            nested = find_first_string(row, "videoId")
            if is_valid_video_id(nested):
                video_id = nested

        set_video_id, removed_video_id = extract_set_video_id(row)
        if video_id is None and is_valid_video_id(removed_video_id):
            video_id = removed_video_id

        if video_id is None:
            missing_video_id += 1
            diagnostics.record_missing_video_id(candidate.type)

        diagnostics.record_parsed(candidate.type)
        tracks.append(Track(
            title=title,
            artist=artist or UNKNOWN_ARTIST,
            video_id=video_id,
            set_video_id=set_video_id,
            playlist_id=extract_playlist_id(row),
        ))

    return PageParse(
        tracks=tracks,
        missing_title=missing_title,
        missing_video_id=missing_video_id,
        diagnostics=diagnostics,
    )


def dedupe_tracks(tracks: list[Track]) -> list[Track]:
    """
    Drop repeated video ids, keeping the first occurrence.

    Tracks without a video id are always kept.
    """
    seen = set()
    result = []
    for track in tracks:
        if track.video_id:
            if track.video_id in seen:
                continue
            seen.add(track.video_id)
        result.append(track)
    return result


# =============================================================================
# CONTINUATION TOKENS
# =============================================================================

def _continuation_item_token(node: Any) -> str | None:
    return _first_string(
        get_path(node, ("continuationItemRenderer", "continuationEndpoint", "continuationCommand", "token")),
        get_path(node, ("continuationItemRenderer", "command", "continuationCommand", "token")),
    )


def token_from_continuations(continuations: Any) -> str | None:
    """First token in a legacy "continuations" list."""
    for entry in _as_list(continuations):
        token = _first_string(
            get_path(entry, ("nextContinuationData", "continuation")),
            get_path(entry, ("reloadContinuationData", "continuation")),
            _continuation_item_token(entry),
            get_path(entry, ("continuationEndpoint", "continuationCommand", "token")),
        )
        if token:
            return token
    return None


def extract_continuation_token(root: Any) -> str | None:
    """
    Find the token for the next page.

    Looked up in tiers, the first hit wins:
        1. Any continuationItemRenderer in the tree
        2. continuationContents.{musicPlaylistShelf,musicShelf}Continuation
        3. The first playlist/music shelf of the first browse tab
        4. Any continuationCommand / nextContinuationData /
           reloadContinuationData in the tree

    Returns:
        The token, or None when there are no more pages.
    """
    for node in iter_nodes(root):
        if isinstance(node, dict) and "continuationItemRenderer" in node:
            token = _continuation_item_token(node)
            if token:
                return token

    for shelf_continuation in ("musicPlaylistShelfContinuation", "musicShelfContinuation"):
        token = token_from_continuations(
            get_path(root, ("continuationContents", shelf_continuation, "continuations"))
        )
        if token:
            return token

    for section in _as_list(get_path(root, _BROWSE_SECTIONS_PATH)):
        shelf = next(
            (section[key] for key in SHELF_RENDERER_KEYS
             if isinstance(section, dict) and isinstance(section.get(key), dict)),
            None
        )
        if shelf is not None:
            token = token_from_continuations(shelf.get("continuations"))
            if token:
                return token
            break

    for node in iter_nodes(root):
        if not isinstance(node, dict):
            continue
        token = _first_string(
            get_path(node, ("continuationCommand", "token")),
            get_path(node, ("nextContinuationData", "continuation")),
            get_path(node, ("reloadContinuationData", "continuation")),
        )
        if token:
            return token

    return None


# =============================================================================
# COUNTS
# =============================================================================

def parse_count_text(text: str) -> int | None:
    """Parse "1,234 songs" style text. Returns None when there is no match."""
    match = _REPORTED_COUNT_RE.search(text)
    if not match:
        return None
    digits = match.group(1).replace(",", "")
    return int(digits) if digits else None


def extract_reported_count(root: Any) -> int | None:
    """Track count stated in the playlist header text, if any."""
    header = None
    for key in HEADER_RENDERER_KEYS:
        header = get_path(root, ("header", key))
        if header:
            break

    for key in HEADER_TEXT_KEYS:
        text = text_from_node(get_path(header, (key,)))
        if text:
            count = parse_count_text(text)
            if count is not None:
                return count
    return None


def _count_value(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if not isinstance(value, str):
        return None
    match = _NUMBER_RE.search(value)
    if not match:
        return None
    digits = match.group(0).replace(",", "")
    return int(digits) if digits else None


def extract_metadata_counts(root: Any) -> dict[str, int]:
    """
    Largest value found per numeric count field anywhere in the tree.

    Numbers are taken as-is, strings contribute their first digit group.
    """
    counts: dict[str, int] = {}
    for node in iter_nodes(root):
        if not isinstance(node, dict):
            continue
        for key in METADATA_COUNT_KEYS:
            if key not in node:
                continue
            value = _count_value(node[key])
            if value is not None:
                counts[key] = max(counts.get(key, 0), value)
    return counts


# =============================================================================
# TABS
# =============================================================================

def extract_tabs(root: Any) -> list[Tab]:
    tabs = []
    for entry in _as_list(get_path(root, ("contents", "singleColumnBrowseResultsRenderer", "tabs"))):
        renderer = get_path(entry, ("tabRenderer",))
        if not isinstance(renderer, dict):
            continue
        endpoint = get_path(renderer, ("endpoint", "browseEndpoint"))
        tabs.append(Tab(
            title=_as_str(renderer.get("title")) or text_from_node(renderer.get("title")),
            tab_identifier=_as_str(renderer.get("tabIdentifier")),
            browse_id=_as_str(get_path(endpoint, ("browseId",))),
            params=_as_str(get_path(endpoint, ("params",))),
            content=renderer.get("content"),
            selected=bool(renderer.get("selected")),
        ))
    return tabs


def pick_preferred_tab(tabs: list[Tab]) -> Tab | None:
    """The songs/tracks tab, else the selected tab, else the first."""
    for tab in tabs:
        if tab.is_songs_tab:
            return tab
    for tab in tabs:
        if tab.selected:
            return tab
    return tabs[0] if tabs else None


# =============================================================================
# BROWSE IDS
# =============================================================================

def normalize_browse_id(playlist_id: str) -> str:
    """Browse id for a playlist: "LM" stays as is, others get the VL prefix."""
    if playlist_id == LIKED_SONGS_ID or playlist_id.startswith(PLAYLIST_PREFIX):
        return playlist_id
    return f"{PLAYLIST_PREFIX}{playlist_id}"


def strip_vl_prefix(playlist_id: str) -> str:
    if playlist_id.startswith(PLAYLIST_PREFIX):
        return playlist_id[len(PLAYLIST_PREFIX):]
    return playlist_id


def toggle_vl_prefix(browse_id: str) -> str:
    if browse_id.startswith(PLAYLIST_PREFIX):
        return strip_vl_prefix(browse_id)
    return f"{PLAYLIST_PREFIX}{browse_id}"


# =============================================================================
# LIBRARY PLAYLISTS
# =============================================================================

def derive_edit_id(browse_id: str, renderer: Any) -> str | None:
    """
    Playlist id accepted by edit_playlist for a library grid item.

    Liked Music cannot be edited and yields None.
    """
    if browse_id == LIKED_SONGS_ID:
        return None
    playlist_id = _first_string(
        get_path(renderer, ("navigationEndpoint", "watchPlaylistEndpoint", "playlistId")),
        get_path(renderer, ("navigationEndpoint", "watchEndpoint", "playlistId")),
        get_path(renderer, ("navigationEndpoint", "playlistEndpoint", "playlistId")),
        get_path(renderer, ("playlistId",)),
    )
    return playlist_id or strip_vl_prefix(browse_id)


def _is_liked_music(playlist: Playlist) -> bool:
    return (
        playlist.id == LIKED_SONGS_ID
        or playlist.edit_id == LIKED_SONGS_ID
        or playlist.title.strip().lower() == LIKED_MUSIC_TITLE.lower()
    )


def normalize_liked_playlist(playlist: Playlist) -> Playlist:
    if not _is_liked_music(playlist):
        return playlist
    browse_id = playlist.browse_id or (
        playlist.id if playlist.id != LIKED_SONGS_ID else None
    ) or LIKED_SONGS_ID
    return Playlist(
        id=LIKED_SONGS_ID,
        title=LIKED_MUSIC_TITLE,
        subtitle=playlist.subtitle or LIKED_MUSIC_SUBTITLE,
        edit_id=None,
        browse_id=browse_id,
    )


def extract_playlists(root: Any) -> list[Playlist]:
    """
    Library playlists from a FEmusic_liked_playlists browse response.

    Liked Music is normalised to id "LM" and always listed first; a
    synthetic entry is added when the grid does not contain it.
    """
    items = get_path(root, _BROWSE_SECTIONS_PATH + (0, "gridRenderer", "items"))

    playlists = []
    seen = set()
    for item in _as_list(items):
        renderer = get_path(item, ("musicTwoRowItemRenderer",))
        browse_id = _as_str(get_path(renderer, ("navigationEndpoint", "browseEndpoint", "browseId")))
        if not browse_id:
            continue

        playlist = normalize_liked_playlist(Playlist(
            id=browse_id,
            title=_as_str(get_path(renderer, ("title", "runs", 0, "text"))) or DEFAULT_PLAYLIST_TITLE,
            subtitle=_as_str(get_path(renderer, ("subtitle", "runs", 0, "text"))),
            edit_id=derive_edit_id(browse_id, renderer),
            browse_id=browse_id,
        ))
        if playlist.id in seen:
            continue
        seen.add(playlist.id)
        playlists.append(playlist)

    liked = [p for p in playlists if p.is_liked_music]
    if not liked:
        liked = [Playlist(
            id=LIKED_SONGS_ID,
            title=LIKED_MUSIC_TITLE,
            subtitle=LIKED_MUSIC_SUBTITLE,
            edit_id=None,
            browse_id=LIKED_SONGS_ID,
        )]
    return liked + [p for p in playlists if not p.is_liked_music]


# =============================================================================
# SEARCH AND ACCOUNT
# =============================================================================

def extract_first_video_id(root: Any) -> str | None:
    """Video id of the first playable item in the first search result shelf."""
    shelf = next(
        (section["musicShelfRenderer"] for section in _as_list(get_path(root, _SEARCH_SECTIONS_PATH))
         if isinstance(get_path(section, ("musicShelfRenderer",)), dict)),
        None
    )
    for item in _as_list(get_path(shelf, ("contents",))):
        renderer = (
            get_path(item, ("musicResponsiveListItemRenderer",))
            or get_path(item, ("musicTwoRowItemRenderer",))
            or item
        )
        video_id = extract_video_id(renderer)
        if video_id:
            return video_id
    return None


def extract_account_info(root: Any) -> AccountInfo:
    header_path = ("actions", 0, "openPopupAction", "popup", "multiPageMenuRenderer", "header")
    header = get_path(root, header_path + ("activeAccountHeaderRenderer",)) or get_path(
        root, header_path + ("accountHeaderRenderer",)
    )

    def header_text(*keys: str) -> str | None:
        for key in keys:
            text = text_from_node(get_path(header, (key,)))
            if text:
                return text
        return None

    return AccountInfo(
        name=header_text("accountName", "name", "channelName"),
        email=header_text("email") or find_first_string(root, "email") or None,
        handle=header_text("channelHandle", "handle"),
    )
