"""Test configuration and fixtures"""

import pytest
from unittest.mock import Mock

import requests

from ytm_bridge.core.config import Config, PaginationConfig, reset_config
from ytm_bridge.innertube.credentials import CredentialBundle


SAMPLE_COOKIES = (
    "SAPISID=sapisid_secret; __Secure-3PAPISID=secure_secret; "
    "VISITOR_INFO1_LIVE=visitor123; SID=abc"
)


def video_id(n):
    """Deterministic valid 11-character video id"""
    return f"vid{n:08d}"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Keep tests away from real config files, .env values and cached config"""
    for name in ("YTM_API_KEY", "YTM_BASE_URL", "YTM_LOG_LEVEL",
                 "YTM_REQUEST_TIMEOUT", "YTM_COOKIES"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config():
    """Default configuration"""
    return Config()


@pytest.fixture
def small_config():
    """Configuration with a low page ceiling"""
    return Config(pagination=PaginationConfig(max_pages=3, max_tracks=100))


@pytest.fixture
def sample_cookies():
    return SAMPLE_COOKIES


@pytest.fixture
def bundle():
    return CredentialBundle(
        cookies=SAMPLE_COOKIES,
        session_secret="secure_secret",
        visitor_id="visitor123",
    )


@pytest.fixture
def make_response():
    """Factory for fake requests.Response objects"""
    def factory(payload=None, status=200, text="", reason="OK"):
        response = Mock(spec=requests.Response)
        response.ok = 200 <= status < 300
        response.status_code = status
        response.text = text
        response.reason = reason
        response.json.return_value = payload if payload is not None else {}
        return response
    return factory


@pytest.fixture
def invalid_argument_response(make_response):
    """Factory for the upstream's malformed-request rejection"""
    def factory():
        return make_response(
            status=400,
            text='{"error": {"code": 400, "status": "INVALID_ARGUMENT"}}',
            reason="Bad Request",
        )
    return factory


@pytest.fixture
def mock_session():
    """Mock HTTP session; set post.return_value or post.side_effect per test"""
    return Mock(spec=requests.Session)


@pytest.fixture
def make_track_row():
    """Factory for musicResponsiveListItemRenderer rows"""
    def factory(title, artist=None, vid=None, set_video_id=None, playlist_id=None):
        columns = [
            {"musicResponsiveListItemFlexColumnRenderer": {"text": {"runs": [{"text": title}]}}},
        ]
        if artist is not None:
            columns.append(
                {"musicResponsiveListItemFlexColumnRenderer": {"text": {"runs": [{"text": artist}]}}}
            )
        row = {"flexColumns": columns}
        item_data = {}
        if vid is not None:
            item_data["videoId"] = vid
        if set_video_id is not None:
            item_data["playlistSetVideoId"] = set_video_id
        if playlist_id is not None:
            item_data["playlistId"] = playlist_id
        if item_data:
            row["playlistItemData"] = item_data
        return {"musicResponsiveListItemRenderer": row}
    return factory


def _continuation_item(token):
    return {
        "continuationItemRenderer": {
            "continuationEndpoint": {"continuationCommand": {"token": token}}
        }
    }


@pytest.fixture
def make_seed_page():
    """Factory for a playlist browse response (first page)"""
    def factory(rows, token=None, subtitle=None):
        contents = list(rows)
        if token:
            contents.append(_continuation_item(token))
        page = {
            "contents": {
                "singleColumnBrowseResultsRenderer": {
                    "tabs": [{
                        "tabRenderer": {
                            "content": {
                                "sectionListRenderer": {
                                    "contents": [
                                        {"musicPlaylistShelfRenderer": {"contents": contents}}
                                    ]
                                }
                            }
                        }
                    }]
                }
            }
        }
        if subtitle:
            page["header"] = {
                "musicDetailHeaderRenderer": {"secondSubtitle": {"runs": [{"text": subtitle}]}}
            }
        return page
    return factory


@pytest.fixture
def make_continuation_page():
    """Factory for a continuation response"""
    def factory(rows, token=None):
        items = list(rows)
        if token:
            items.append(_continuation_item(token))
        return {
            "onResponseReceivedActions": [
                {"appendContinuationItemsAction": {"continuationItems": items}}
            ]
        }
    return factory


@pytest.fixture
def library_response():
    """FEmusic_liked_playlists browse response with two playlists"""
    def grid_item(browse_id, title, subtitle, playlist_id=None):
        endpoint = {"browseEndpoint": {"browseId": browse_id}}
        if playlist_id:
            endpoint["watchPlaylistEndpoint"] = {"playlistId": playlist_id}
        return {
            "musicTwoRowItemRenderer": {
                "title": {"runs": [{"text": title}]},
                "subtitle": {"runs": [{"text": subtitle}]},
                "navigationEndpoint": endpoint,
            }
        }

    return {
        "contents": {
            "singleColumnBrowseResultsRenderer": {
                "tabs": [{
                    "tabRenderer": {
                        "content": {
                            "sectionListRenderer": {
                                "contents": [{
                                    "gridRenderer": {
                                        "items": [
                                            grid_item("VLPLroadtrip", "Road Trip", "Alex", "PLroadtrip"),
                                            grid_item("VLLM", "Liked music", "Auto playlist"),
                                            grid_item("VLPLfocus", "Focus", "Alex"),
                                            grid_item("VLPLroadtrip", "Road Trip (dup)", "Alex"),
                                        ]
                                    }
                                }]
                            }
                        }
                    }
                }]
            }
        }
    }


@pytest.fixture
def search_response():
    return {
        "contents": {
            "tabbedSearchResultsRenderer": {
                "tabs": [{
                    "tabRenderer": {
                        "content": {
                            "sectionListRenderer": {
                                "contents": [
                                    {"itemSectionRenderer": {"contents": []}},
                                    {"musicShelfRenderer": {"contents": [
                                        {"musicResponsiveListItemRenderer": {
                                            "playlistItemData": {"videoId": "bad"},
                                        }},
                                        {"musicResponsiveListItemRenderer": {
                                            "playlistItemData": {"videoId": "dQw4w9WgXcQ"},
                                        }},
                                    ]}},
                                ]
                            }
                        }
                    }
                }]
            }
        }
    }


@pytest.fixture
def account_response():
    return {
        "actions": [{
            "openPopupAction": {
                "popup": {
                    "multiPageMenuRenderer": {
                        "header": {
                            "activeAccountHeaderRenderer": {
                                "accountName": {"runs": [{"text": "Alex Doe"}]},
                                "channelHandle": {"runs": [{"text": "@alexdoe"}]},
                            }
                        },
                        "sections": [{"email": "alex@example.com"}],
                    }
                }
            }
        }]
    }
