"""
Data models for YouTube Music innertube results.

This module defines the dataclasses produced by the extractor and the
pagination engine, and their conversion to the JSON envelope shapes
returned by the dispatcher (camelCase keys, as the web client expects).

Models:
    Track: One parsed track row
    Playlist: One library playlist entry
    AccountInfo: Signed-in account summary
    Tab: One tab of a browse response
    RendererCandidate: A renderer subtree found in a response (transient)
    Diagnostics: Per-run parse counters
    CollectionResult: Outcome of one pagination run
"""

from dataclasses import dataclass, field
from typing import Any


UNKNOWN_ARTIST = "Unknown Artist"

LIKED_SONGS_ID = "LM"
LIKED_MUSIC_TITLE = "Liked Music"

KNOWN_RENDERER_KEYS = (
    "musicResponsiveListItemRenderer",
    "playlistVideoRenderer",
    "playlistPanelVideoRenderer",
    "videoRenderer",
)

# Renderer type assigned to untyped rows that only look like list items
PRIMARY_RENDERER_KEY = "musicResponsiveListItemRenderer"


@dataclass(frozen=True)
class Track:
    """
    Immutable representation of one playlist row.

    Attributes:
        title: Track title, never empty.
        artist: Artist text, UNKNOWN_ARTIST when nothing could be derived.
        video_id: 11-character YouTube video id, or None.
                  Identity key for deduplication when present.
        set_video_id: Playlist-entry id needed to remove this row from a
                      playlist, or None.
        playlist_id: Playlist the row belongs to, if reported.
    """
    title: str
    artist: str = UNKNOWN_ARTIST
    video_id: str | None = None
    set_video_id: str | None = None
    playlist_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "artist": self.artist,
            "videoId": self.video_id,
            "setVideoId": self.set_video_id,
            "playlistId": self.playlist_id,
        }


@dataclass(frozen=True)
class Playlist:
    """
    Immutable representation of a library playlist.

    Attributes:
        id: Browse id used to fetch the playlist ("LM" for Liked Music).
        title: Display title.
        subtitle: First subtitle run (usually owner or "Auto-generated").
        edit_id: Playlist id accepted by edit_playlist, None for Liked Music.
        browse_id: Browse id as reported by the library grid.
    """
    id: str
    title: str
    subtitle: str | None = None
    edit_id: str | None = None
    browse_id: str | None = None

    @property
    def is_liked_music(self) -> bool:
        return self.id == LIKED_SONGS_ID

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "editId": self.edit_id,
            "browseId": self.browse_id,
        }


@dataclass(frozen=True)
class AccountInfo:
    name: str | None = None
    email: str | None = None
    handle: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "email": self.email, "handle": self.handle}


@dataclass(frozen=True)
class Tab:
    """
    One tab of a browse response.

    Attributes:
        title: Tab title text.
        tab_identifier: Upstream tab identifier, if any.
        browse_id: Browse id the tab points at.
        params: Opaque browse params for that browse id.
        content: Embedded tab content (raw), if the tab is pre-rendered.
        selected: Whether the upstream marked the tab as selected.
    """
    title: str | None = None
    tab_identifier: str | None = None
    browse_id: str | None = None
    params: str | None = None
    content: Any = None
    selected: bool = False

    @property
    def is_songs_tab(self) -> bool:
        title = (self.title or "").strip().lower()
        identifier = (self.tab_identifier or "").lower()
        return any(word in text for word in ("song", "track") for text in (title, identifier))


@dataclass(frozen=True)
class RendererCandidate:
    """
    A renderer subtree discovered in a response.

    Attributes:
        type: One of KNOWN_RENDERER_KEYS.
        renderer: The raw renderer dictionary (not copied).
    """
    type: str
    renderer: dict[str, Any]


def _bump(bucket: dict[str, int], key: str, amount: int = 1) -> None:
    bucket[key] = bucket.get(key, 0) + amount


@dataclass
class Diagnostics:
    """
    Mutable per-run parse counters.

    The four count maps are keyed by renderer type. Merging two Diagnostics
    sums per key, so within one collection run every counter only grows.

    Attributes:
        renderer_counts: Renderer candidates discovered.
        parsed_counts: Candidates that produced a Track.
        missing_title_by_type: Candidates dropped for lack of a title.
        missing_video_id_by_type: Tracks kept without a video id.
        reported_total: Track count parsed from the playlist header text.
        metadata_counts: Largest value seen per numeric count field.
        stop_reason: Why pagination ended (set once per run).
    """
    renderer_counts: dict[str, int] = field(default_factory=dict)
    parsed_counts: dict[str, int] = field(default_factory=dict)
    missing_title_by_type: dict[str, int] = field(default_factory=dict)
    missing_video_id_by_type: dict[str, int] = field(default_factory=dict)
    reported_total: int | None = None
    metadata_counts: dict[str, int] = field(default_factory=dict)
    stop_reason: str | None = None

    def record_renderer(self, renderer_type: str) -> None:
        _bump(self.renderer_counts, renderer_type)

    def record_parsed(self, renderer_type: str) -> None:
        _bump(self.parsed_counts, renderer_type)

    def record_missing_title(self, renderer_type: str) -> None:
        _bump(self.missing_title_by_type, renderer_type)

    def record_missing_video_id(self, renderer_type: str) -> None:
        _bump(self.missing_video_id_by_type, renderer_type)

    def merge(self, other: "Diagnostics") -> None:
        """Add the other run's per-type counters into this one."""
        for target, source in (
            (self.renderer_counts, other.renderer_counts),
            (self.parsed_counts, other.parsed_counts),
            (self.missing_title_by_type, other.missing_title_by_type),
            (self.missing_video_id_by_type, other.missing_video_id_by_type),
        ):
            for key, value in source.items():
                _bump(target, key, value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rendererCounts": dict(self.renderer_counts),
            "parsedCounts": dict(self.parsed_counts),
            "missingTitleByType": dict(self.missing_title_by_type),
            "missingVideoIdByType": dict(self.missing_video_id_by_type),
            "reportedTotal": self.reported_total,
            "metadataCounts": dict(self.metadata_counts),
            "stopReason": self.stop_reason,
        }


@dataclass
class PageParse:
    """Tracks and counters extracted from a single response page."""
    tracks: list[Track]
    missing_title: int
    missing_video_id: int
    diagnostics: Diagnostics


@dataclass
class CollectionResult:
    """
    Outcome of one pagination run.

    Attributes:
        tracks: Collected tracks, at most the run's max_tracks.
        count: Number of tracks accumulated before slicing.
        pages: Pages parsed, the seed page included.
        continuation: Token left unfetched when the run stopped, or None.
        missing_title: Rows dropped for lack of a title.
        missing_video_id: Tracks kept without a video id.
        diagnostics: Merged per-type counters and stop reason.
        truncated: True when more data exists but max_tracks was reached.
        browse_id: Browse id the result was collected from.
    """
    tracks: list[Track]
    count: int
    pages: int
    continuation: str | None
    missing_title: int
    missing_video_id: int
    diagnostics: Diagnostics
    truncated: bool = False
    browse_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tracks": [track.to_dict() for track in self.tracks],
            "count": self.count,
            "pages": self.pages,
            "truncated": self.truncated,
            "missingTitle": self.missing_title,
            "missingVideoId": self.missing_video_id,
            "diagnostics": self.diagnostics.to_dict(),
        }
