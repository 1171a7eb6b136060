"""Test schema-tolerant extraction"""

import pytest

from ytm_bridge.innertube.extractor import (
    collect_renderer_candidates,
    dedupe_tracks,
    extract_account_info,
    extract_continuation_token,
    extract_first_video_id,
    extract_metadata_counts,
    extract_playlists,
    extract_reported_count,
    extract_tabs,
    get_path,
    iter_nodes,
    normalize_browse_id,
    parse_tracks,
    pick_preferred_tab,
    split_label,
    text_from_node,
    toggle_vl_prefix,
)
from ytm_bridge.innertube.models import Tab, Track


class TestTreeHelpers:
    """Test tree traversal and path lookup"""

    def test_iter_nodes_document_order(self):
        root = {
            "name": "root",
            "kids": [
                {"name": "x", "kids": [{"name": "x1"}]},
                {"name": "y"},
            ],
        }

        names = [node["name"] for node in iter_nodes(root) if isinstance(node, dict)]

        assert names == ["root", "x", "x1", "y"]

    def test_iter_nodes_skips_scalars(self):
        assert list(iter_nodes("text")) == []
        assert list(iter_nodes([1, "a", None])) == [[1, "a", None]]

    def test_iter_nodes_deep_tree(self):
        """Depth far beyond the recursion limit is fine"""
        root = current = {}
        for _ in range(20000):
            current["child"] = {}
            current = current["child"]

        assert sum(1 for _ in iter_nodes(root)) == 20001

    def test_get_path(self):
        data = {"a": [{"b": "found"}]}

        assert get_path(data, ("a", 0, "b")) == "found"
        assert get_path(data, ("a", 5, "b")) is None
        assert get_path(data, ("a", "b")) is None
        assert get_path(data, ("a", 0, "b", "c")) is None
        assert get_path(None, ("a",)) is None


class TestText:
    """Test text helpers"""

    def test_accessibility_label_preferred(self):
        node = {
            "runs": [{"text": "Visible"}],
            "accessibility": {"accessibilityData": {"label": "Spoken"}},
        }
        assert text_from_node(node) == "Spoken"

    def test_simple_text_and_runs(self):
        assert text_from_node({"simpleText": "Simple"}) == "Simple"
        assert text_from_node({"runs": [{"text": "Amber"}, {"text": " Gray"}, {"bold": True}]}) == "Amber Gray"
        assert text_from_node({"runs": []}) is None
        assert text_from_node("not a node") is None

    def test_split_label(self):
        assert split_label("Wildfire • Amber Gray • Daylight") == ["Wildfire", "Amber Gray", "Daylight"]
        assert split_label("Wildfire · Amber Gray") == ["Wildfire", "Amber Gray"]
        assert split_label("Wildfire - Amber Gray") == ["Wildfire", "Amber Gray"]
        assert split_label("Wildfire") == ["Wildfire"]

    def test_split_label_separator_priority(self):
        """The highest-priority separator present wins"""
        assert split_label("Self-Titled - Live • Band") == ["Self-Titled - Live", "Band"]


class TestRendererCandidates:
    """Test renderer discovery"""

    def test_known_renderer_keys(self):
        root = {
            "items": [
                {"playlistVideoRenderer": {"videoId": "a"}},
                {"videoRenderer": {"videoId": "b"}},
                {"playlistPanelVideoRenderer": "not a dict"},
            ]
        }

        types = [c.type for c in collect_renderer_candidates(root)]

        assert types == ["playlistVideoRenderer", "videoRenderer"]

    def test_untyped_list_item(self):
        root = {"row": {"flexColumns": [], "navigationEndpoint": {}}}
        other = {"row": {"flexColumns": []}}

        candidates = collect_renderer_candidates(root)

        assert [c.type for c in candidates] == ["musicResponsiveListItemRenderer"]
        assert candidates[0].renderer is root["row"]
        assert collect_renderer_candidates(other) == []

    def test_shared_renderer_emitted_once(self):
        """A renderer object reachable through two paths is captured once"""
        shared = {"flexColumns": [], "playlistItemData": {"videoId": "vid00000001"}}
        root = {"a": {"musicResponsiveListItemRenderer": shared}, "b": [shared]}

        candidates = collect_renderer_candidates(root)

        assert len(candidates) == 1
        assert candidates[0].renderer is shared


class TestParseTracks:
    """Test track parsing"""

    def test_list_item_rows(self, make_track_row):
        root = {"contents": [
            make_track_row("Wildfire", "Amber Gray", "vid00000001", "SET1", "PL1"),
            make_track_row("Daylight", "Amber Gray", "vid00000002"),
        ]}

        result = parse_tracks(root)

        assert result.tracks == [
            Track("Wildfire", "Amber Gray", "vid00000001", "SET1", "PL1"),
            Track("Daylight", "Amber Gray", "vid00000002"),
        ]
        assert result.missing_title == 0
        assert result.missing_video_id == 0
        assert result.diagnostics.renderer_counts == {"musicResponsiveListItemRenderer": 2}
        assert result.diagnostics.parsed_counts == {"musicResponsiveListItemRenderer": 2}

    def test_accessibility_label_fallback(self):
        """Title and artist come from the label when the columns are empty"""
        row = {
            "flexColumns": [],
            "navigationEndpoint": {"watchEndpoint": {"videoId": "vid00000003"}},
            "accessibility": {"accessibilityData": {"label": "Wildfire • Amber Gray • Daylight"}},
        }

        result = parse_tracks({"row": row})

        assert result.tracks == [Track("Wildfire", "Amber Gray", "vid00000003")]

    def test_second_flex_column_and_fixed_columns(self):
        row = {
            "flexColumns": [
                {},
                {"musicResponsiveListItemFlexColumnRenderer": {"text": {"runs": []}}},
                {"musicResponsiveListItemFlexColumnRenderer": {"text": {"simpleText": "Artist Three"}}},
            ],
            "fixedColumns": [
                {"musicResponsiveListItemFixedColumnRenderer": {"text": {"simpleText": "Fixed Title"}}},
            ],
        }

        result = parse_tracks({"musicResponsiveListItemRenderer": row})

        assert result.tracks[0].title == "Fixed Title"
        assert result.tracks[0].artist == "Artist Three"

    def test_missing_title_dropped(self):
        row = {"flexColumns": [], "playlistItemData": {"videoId": "vid00000004"}}

        result = parse_tracks({"musicResponsiveListItemRenderer": row})

        assert result.tracks == []
        assert result.missing_title == 1
        assert result.diagnostics.missing_title_by_type == {"musicResponsiveListItemRenderer": 1}
        assert result.diagnostics.parsed_counts == {}

    def test_unknown_artist_default(self, make_track_row):
        result = parse_tracks(make_track_row("Instrumental", vid="vid00000005"))

        assert result.tracks[0].artist == "Unknown Artist"

    def test_invalid_video_id_kept_as_missing(self, make_track_row):
        result = parse_tracks(make_track_row("Song", "Artist", vid="short"))

        assert result.tracks[0].video_id is None
        assert result.missing_video_id == 1
        assert result.diagnostics.missing_video_id_by_type == {"musicResponsiveListItemRenderer": 1}

    def test_nested_video_id_fallback(self, make_track_row):
        row = make_track_row("Song", "Artist")
        row["musicResponsiveListItemRenderer"]["overlay"] = {
            "musicItemThumbnailOverlayRenderer": {
                "content": {"playNavigationEndpoint": {"watchEndpoint": {"videoId": "vid00000006"}}}
            }
        }

        assert parse_tracks(row).tracks[0].video_id == "vid00000006"

    def test_menu_edit_endpoint(self, make_track_row):
        """setVideoId, playlistId and a fallback video id come from the remove menu item"""
        row = make_track_row("Song", "Artist")
        row["musicResponsiveListItemRenderer"]["menu"] = {
            "menuRenderer": {
                "items": [
                    {"menuNavigationItemRenderer": {}},
                    {"menuServiceItemRenderer": {
                        "serviceEndpoint": {
                            "playlistEditEndpoint": {
                                "playlistId": "PLedit",
                                "actions": [{
                                    "action": "ACTION_REMOVE_VIDEO",
                                    "setVideoId": "SETMENU",
                                    "removedVideoId": "vid00000007",
                                }],
                            }
                        }
                    }},
                ]
            }
        }

        track = parse_tracks(row).tracks[0]

        assert track.video_id == "vid00000007"
        assert track.set_video_id == "SETMENU"
        assert track.playlist_id == "PLedit"

    def test_playlist_video_renderer(self):
        row = {
            "playlistVideoRenderer": {
                "videoId": "vid00000008",
                "title": {"runs": [{"text": "Video Title"}]},
                "shortBylineText": {"runs": [{"text": "Channel"}]},
            }
        }

        result = parse_tracks(row)

        assert result.tracks == [Track("Video Title", "Channel", "vid00000008")]
        assert result.diagnostics.parsed_counts == {"playlistVideoRenderer": 1}

    @pytest.mark.parametrize("root", [None, "text", 42, {}, [], {"contents": {"foo": [1, 2]}}])
    def test_unusable_page(self, root):
        """Pages without renderers give empty results, not errors"""
        result = parse_tracks(root)

        assert result.tracks == []
        assert result.missing_title == 0
        assert result.diagnostics.renderer_counts == {}


class TestDedupe:
    """Test video id deduplication"""

    def test_first_occurrence_kept_and_id_less_retained(self):
        tracks = [
            Track("A", video_id="vid00000001"),
            Track("B"),
            Track("C", video_id="vid00000001"),
            Track("D"),
            Track("E", video_id="vid00000002"),
        ]

        assert [t.title for t in dedupe_tracks(tracks)] == ["A", "B", "D", "E"]


class TestContinuationToken:
    """Test continuation token lookup tiers"""

    def test_continuation_item_renderer(self):
        root = {"items": [
            {"continuationItemRenderer": {"command": {"continuationCommand": {"token": "T1"}}}}
        ]}
        assert extract_continuation_token(root) == "T1"

    def test_continuation_item_beats_legacy_list(self):
        root = {
            "continuationContents": {"musicPlaylistShelfContinuation": {
                "continuations": [{"nextContinuationData": {"continuation": "LEGACY"}}],
                "contents": [{"continuationItemRenderer": {
                    "continuationEndpoint": {"continuationCommand": {"token": "ITEM"}}
                }}],
            }}
        }
        assert extract_continuation_token(root) == "ITEM"

    def test_shelf_continuation_contents(self):
        root = {"continuationContents": {"musicShelfContinuation": {
            "continuations": [{"reloadContinuationData": {"continuation": "T2"}}]
        }}}
        assert extract_continuation_token(root) == "T2"

    def test_first_tab_shelf_before_tree_scan(self):
        root = {
            "frameworkUpdates": {"nextContinuationData": {"continuation": "ELSEWHERE"}},
            "contents": {"singleColumnBrowseResultsRenderer": {"tabs": [{"tabRenderer": {
                "content": {"sectionListRenderer": {"contents": [
                    {"musicCarouselShelfRenderer": {}},
                    {"musicShelfRenderer": {
                        "continuations": [{"nextContinuationData": {"continuation": "T3"}}]
                    }},
                ]}}
            }}]}},
        }
        assert extract_continuation_token(root) == "T3"

    def test_any_node_fallback(self):
        root = {"a": {"b": [{"continuationCommand": {"token": "T4"}}]}}
        assert extract_continuation_token(root) == "T4"

    def test_absent(self, make_seed_page, make_track_row):
        assert extract_continuation_token(make_seed_page([make_track_row("Song", "Artist")])) is None
        assert extract_continuation_token(None) is None


class TestCounts:
    """Test reported and metadata counts"""

    def test_reported_count_from_header(self):
        root = {"header": {"musicEditablePlaylistDetailHeaderRenderer": {
            "subtitle": {"runs": [{"text": "Playlist • 2024"}]},
            "secondSubtitle": {"runs": [{"text": "1,234 songs • 3+ hours"}]},
        }}}
        assert extract_reported_count(root) == 1234

    def test_reported_count_singular_and_description(self):
        root = {"header": {"musicPlaylistHeaderRenderer": {
            "description": {"simpleText": "Just 1 Track here"}
        }}}
        assert extract_reported_count(root) == 1

    def test_reported_count_absent(self):
        assert extract_reported_count({"header": {"musicDetailHeaderRenderer": {
            "subtitle": {"runs": [{"text": "Playlist • 2024"}]}
        }}}) is None
        assert extract_reported_count({}) is None

    def test_metadata_counts_keep_maximum(self):
        root = {
            "a": {"totalItems": 5},
            "b": [{"totalItems": "1,200 items"}, {"songCount": "n/a"}],
            "c": {"videoCount": True, "trackCount": 7.0},
        }
        assert extract_metadata_counts(root) == {"totalItems": 1200, "trackCount": 7}


class TestTabs:
    """Test tab extraction and selection"""

    def tab_response(self, *tabs):
        return {"contents": {"singleColumnBrowseResultsRenderer": {
            "tabs": [{"tabRenderer": tab} for tab in tabs] + [{"expandableTabRenderer": {}}]
        }}}

    def test_extract_tabs(self):
        root = self.tab_response(
            {"title": "Overview", "selected": True, "content": {"x": 1}},
            {
                "title": {"runs": [{"text": "Songs"}]},
                "tabIdentifier": "FEmusic_liked_songs",
                "endpoint": {"browseEndpoint": {"browseId": "FEmusic_liked_videos", "params": "P"}},
            },
        )

        tabs = extract_tabs(root)

        assert tabs == [
            Tab(title="Overview", selected=True, content={"x": 1}),
            Tab(title="Songs", tab_identifier="FEmusic_liked_songs",
                browse_id="FEmusic_liked_videos", params="P"),
        ]

    def test_preferred_tab_order(self):
        overview = Tab(title="Overview", selected=True)
        songs = Tab(title="All SONGS")
        tracks_by_id = Tab(title="Library", tab_identifier="music_tracks")
        other = Tab(title="Albums")

        assert pick_preferred_tab([overview, songs]) is songs
        assert pick_preferred_tab([other, tracks_by_id]) is tracks_by_id
        assert pick_preferred_tab([other, overview]) is overview
        assert pick_preferred_tab([other]) is other
        assert pick_preferred_tab([]) is None


class TestBrowseIds:
    """Test browse id normalisation"""

    def test_normalize(self):
        assert normalize_browse_id("LM") == "LM"
        assert normalize_browse_id("PL123") == "VLPL123"
        assert normalize_browse_id("VLPL123") == "VLPL123"

    def test_toggle(self):
        assert toggle_vl_prefix("VLPL123") == "PL123"
        assert toggle_vl_prefix("PL123") == "VLPL123"


class TestLibraryParsing:
    """Test playlists, search and account extraction"""

    def test_extract_playlists(self, library_response):
        playlists = extract_playlists(library_response)

        assert [p.id for p in playlists] == ["LM", "VLPLroadtrip", "VLPLfocus"]
        liked, road_trip, focus = playlists
        assert liked.title == "Liked Music"
        assert liked.subtitle == "Auto playlist"
        assert liked.edit_id is None
        assert liked.browse_id == "VLLM"
        assert road_trip.title == "Road Trip"
        assert road_trip.edit_id == "PLroadtrip"
        assert focus.edit_id == "PLfocus"

    def test_synthetic_liked_music(self):
        playlists = extract_playlists({})

        assert [p.to_dict() for p in playlists] == [{
            "id": "LM",
            "title": "Liked Music",
            "subtitle": "Auto-generated",
            "editId": None,
            "browseId": "LM",
        }]

    def test_first_search_video_id(self, search_response):
        assert extract_first_video_id(search_response) == "dQw4w9WgXcQ"
        assert extract_first_video_id({}) is None

    def test_account_info(self, account_response):
        account = extract_account_info(account_response)

        assert account.name == "Alex Doe"
        assert account.handle == "@alexdoe"
        assert account.email == "alex@example.com"

    def test_account_info_missing(self):
        assert extract_account_info({}).to_dict() == {"name": None, "email": None, "handle": None}
