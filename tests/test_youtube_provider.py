import json

import httplib2
import pytest
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.errors import HttpError

from pipeline.errors import AuthFailure, PermanentProviderError, TransientProviderError
from providers.youtube.errors import error_reasons, translate_error
from providers.youtube.filters import (
    candidate_from_search_item,
    clean_channel_name,
    split_video_title,
)
from providers.youtube.provider import YouTubeProvider


def _http_error(status, reason=None, headers=None):
    info = {"status": str(status)}
    info.update(headers or {})
    body = {"error": {"code": status, "message": reason or "err"}}
    if reason:
        body["error"]["errors"] = [{"reason": reason, "message": reason}]
    return HttpError(httplib2.Response(info), json.dumps(body).encode("utf-8"))


class _Req:
    def __init__(self, fn):
        self.execute = fn


class FakeCollection:
    def __init__(self, owner, name):
        self.owner = owner
        self.name = name

    def list(self, **params):
        self.owner.calls.append((self.name, "list", params))
        return _Req(lambda: self.owner.pages[self.name].pop(0))

    def insert(self, **params):
        self.owner.calls.append((self.name, "insert", params))

        def run():
            err = self.owner.insert_errors.pop(0) if self.owner.insert_errors else None
            if err is not None:
                raise err
            return {"id": "created"}

        return _Req(run)


class FakeYouTube:
    def __init__(self, pages=None, insert_errors=()):
        self.pages = pages or {}
        self.insert_errors = list(insert_errors)
        self.calls = []

    def search(self):
        return FakeCollection(self, "search")

    def playlistItems(self):
        return FakeCollection(self, "playlistItems")

    def playlists(self):
        return FakeCollection(self, "playlists")


def test_channel_and_title_cleanup():
    assert clean_channel_name("Daft Punk - Topic") == "Daft Punk"
    assert clean_channel_name("AdeleVEVO") == "Adele"
    assert split_video_title("Adele - Hello (Official Music Video)") == ("Adele", "Hello")
    assert split_video_title("Hello [Official Audio]") == (None, "Hello")


def test_candidate_from_search_item():
    cand = candidate_from_search_item(
        {
            "id": {"kind": "youtube#video", "videoId": "vid1"},
            "snippet": {"title": "Queen - Don&#39;t Stop Me Now (Official Video)", "channelTitle": "Queen Official"},
        }
    )

    assert cand.id == "vid1"
    assert cand.title == "Don't Stop Me Now"
    assert cand.all_artists() == ("Queen", "Queen")
    assert candidate_from_search_item({"id": {"kind": "youtube#channel"}}) is None


def test_search_restricts_to_music_videos():
    yt = FakeYouTube(pages={"search": [{"items": [{"id": {"videoId": "v"}, "snippet": {"title": "A - B"}}]}]})

    results = list(YouTubeProvider(yt).search("B A"))

    assert [c.id for c in results] == ["v"]
    params = yt.calls[0][2]
    assert params["type"] == "video"
    assert params["videoCategoryId"] == "10"


def test_get_tracks_follows_page_tokens():
    yt = FakeYouTube(
        pages={
            "playlistItems": [
                {"items": [{"contentDetails": {"videoId": "a"}}], "nextPageToken": "p2"},
                {"items": [{"contentDetails": {"videoId": "b"}}]},
            ]
        }
    )

    snapshot = YouTubeProvider(yt).get_tracks("PL1")

    assert list(snapshot) == ["a", "b"]
    assert yt.calls[1][2]["pageToken"] == "p2"


def test_add_tracks_inserts_one_video():
    yt = FakeYouTube()
    YouTubeProvider(yt).add_tracks("PL1", ["v1"])

    body = yt.calls[0][2]["body"]
    assert body["snippet"]["resourceId"]["videoId"] == "v1"

    with pytest.raises(ValueError):
        YouTubeProvider(yt).add_tracks("PL1", ["v1", "v2"])


def test_quota_exhaustion_is_permanent():
    yt = FakeYouTube(insert_errors=[_http_error(403, "quotaExceeded")])

    with pytest.raises(PermanentProviderError) as exc:
        YouTubeProvider(yt).add_tracks("PL1", ["v1"])

    assert "quota" in str(exc.value)


def test_error_mapping():
    assert "quotaExceeded" in error_reasons(_http_error(403, "quotaExceeded"))

    limited = translate_error(_http_error(403, "rateLimitExceeded", {"retry-after": "4"}))
    assert isinstance(limited, TransientProviderError)
    assert limited.retry_after == 4.0

    assert isinstance(translate_error(_http_error(401)), AuthFailure)
    assert isinstance(translate_error(_http_error(503)), TransientProviderError)
    assert type(translate_error(_http_error(404, "playlistNotFound"))) is PermanentProviderError


def test_playlist_id_detection():
    yt = YouTubeProvider(FakeYouTube())

    assert yt.looks_like_playlist_id("PLabcdefghijklmnop")
    assert yt.normalize_playlist_id("https://www.youtube.com/playlist?list=PLxyz123") == "PLxyz123"
    assert not yt.looks_like_playlist_id("Friday requests")


def test_failed_token_refresh_is_an_auth_failure():
    yt = FakeYouTube(insert_errors=[RefreshError("invalid_grant: Token has been expired or revoked.")])

    with pytest.raises(AuthFailure) as exc:
        YouTubeProvider(yt).add_tracks("PL1", ["dQw4w9WgXcQ"])

    assert exc.value.status == 401


@pytest.mark.parametrize(
    "error",
    [
        httplib2.ServerNotFoundError("Unable to find the server at www.googleapis.com"),
        TransportError("connection reset"),
        ConnectionResetError("reset by peer"),
    ],
)
def test_transport_errors_are_transient(error):
    yt = FakeYouTube(insert_errors=[error])

    with pytest.raises(TransientProviderError):
        YouTubeProvider(yt).add_tracks("PL1", ["dQw4w9WgXcQ"])


def test_video_id_validation():
    yt = YouTubeProvider(FakeYouTube())

    assert yt.is_valid_track_id("dQw4w9WgXcQ")
    assert not yt.is_valid_track_id("4u7EnebtmKWzUH433cf5Qv")
    assert not yt.is_valid_track_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
