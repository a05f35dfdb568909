"""
Tests for the status checker and the data proxies.

Run: pytest tests/test_library.py -v
"""

import pytest
import requests
from spotipy.exceptions import SpotifyException

from tests.conftest import make_track


DATA_ENDPOINTS = [
    "/api/spotify/recent-tracks",
    "/api/spotify/top-tracks",
    "/api/spotify/top-albums",
    "/api/spotify/top-artists",
]

PROVIDER_KEYS = {
    "/api/spotify/recent-tracks": "recently_played",
    "/api/spotify/top-tracks": "top_tracks",
    "/api/spotify/top-albums": "top_tracks",
    "/api/spotify/top-artists": "top_artists",
}


def _login(client, token="access-123"):
    client.cookies.set("spotify_access_token", token)


# -----------------------------------------------------------------------------
# Status
# -----------------------------------------------------------------------------


def test_status_without_cookie_is_disconnected(client, fake_spotify):
    response = client.get("/api/spotify/status")
    assert response.status_code == 200
    assert response.json() == {"connected": False, "user": None}
    assert fake_spotify.calls == []


def test_status_folds_provider_failure_into_disconnected(client, fake_spotify):
    _login(client)
    fake_spotify.error = SpotifyException(401, -1, "The access token expired")
    response = client.get("/api/spotify/status")
    assert response.status_code == 200
    assert response.json() == {"connected": False, "user": None, "error": "Token expired"}


def test_status_folds_network_failure_into_disconnected(client, fake_spotify):
    _login(client)
    fake_spotify.error = requests.exceptions.ConnectionError("boom")
    response = client.get("/api/spotify/status")
    assert response.status_code == 200
    assert response.json()["connected"] is False


def test_status_returns_profile(client, fake_spotify):
    _login(client, "tok")
    fake_spotify.responses["me"] = {
        "id": "u1",
        "display_name": "Sam",
        "email": "sam@example.com",
        "followers": {"total": 3},
        "images": [],
        "country": "GB",
        "product": "free",
    }
    response = client.get("/api/spotify/status")
    body = response.json()
    assert body["connected"] is True
    assert "error" not in body
    assert body["user"]["id"] == "u1"
    assert body["user"]["followers"] == 3
    assert body["user"]["product"] == "free"
    assert fake_spotify.tokens == ["tok"]


# -----------------------------------------------------------------------------
# Error taxonomy shared by every data proxy
# -----------------------------------------------------------------------------


@pytest.mark.parametrize("path", DATA_ENDPOINTS)
def test_missing_access_token_is_unauthorized(client, fake_spotify, path):
    response = client.get(path)
    assert response.status_code == 401
    assert "error" in response.json()
    assert fake_spotify.calls == []


@pytest.mark.parametrize("path", DATA_ENDPOINTS)
def test_provider_401_asks_for_refresh(client, fake_spotify, path):
    _login(client)
    fake_spotify.error = SpotifyException(401, -1, "The access token expired")
    response = client.get(path)
    assert response.status_code == 401
    assert response.json()["shouldRefresh"] is True


@pytest.mark.parametrize("path", ["/api/spotify/recent-tracks", "/api/spotify/top-tracks"])
def test_provider_403_asks_for_reconnect(client, fake_spotify, path):
    _login(client)
    fake_spotify.error = SpotifyException(403, -1, "Insufficient client scope")
    response = client.get(path)
    assert response.status_code == 403
    body = response.json()
    assert body["shouldReconnect"] is True
    assert "error" in body


def test_other_provider_status_is_passed_through(client, fake_spotify):
    _login(client)
    fake_spotify.error = SpotifyException(429, -1, "API rate limit exceeded")
    response = client.get("/api/spotify/top-tracks")
    assert response.status_code == 429
    assert response.json() == {"error": "Failed to fetch top tracks"}


@pytest.mark.parametrize("path", DATA_ENDPOINTS)
def test_network_failure_is_internal_error(client, fake_spotify, path):
    _login(client)
    fake_spotify.error = requests.exceptions.ConnectionError("connection reset")
    response = client.get(path)
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_invalid_time_range_is_rejected(client, fake_spotify):
    _login(client)
    response = client.get("/api/spotify/top-tracks", params={"time_range": "forever"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request parameters"
    assert fake_spotify.calls == []


# -----------------------------------------------------------------------------
# Recent tracks
# -----------------------------------------------------------------------------


def test_recent_tracks_passes_items_through(client, fake_spotify):
    _login(client)
    items = [
        {"track": make_track("t1", "A1"), "played_at": "2024-05-01T10:00:00.000Z"},
        {"track": make_track("t2", "A2"), "played_at": "2024-05-01T09:55:00.000Z"},
    ]
    fake_spotify.responses["recently_played"] = {"items": items, "cursors": {}}
    response = client.get("/api/spotify/recent-tracks", params={"before": 1714557600000})
    assert response.status_code == 200
    assert response.json() == {"tracks": items, "total": 2}
    assert fake_spotify.calls == [
        ("recently_played", {"limit": 50, "after": None, "before": 1714557600000})
    ]


def test_recent_tracks_after_cursor(client, fake_spotify):
    _login(client)
    fake_spotify.responses["recently_played"] = {"items": [], "cursors": None}
    response = client.get("/api/spotify/recent-tracks", params={"after": 1714550000000})
    assert response.status_code == 200
    assert response.json() == {"tracks": [], "total": 0}
    assert fake_spotify.calls == [
        ("recently_played", {"limit": 50, "after": 1714550000000, "before": None})
    ]


def test_recent_tracks_rejects_both_cursors(client, fake_spotify):
    _login(client)
    response = client.get("/api/spotify/recent-tracks", params={"before": 2, "after": 1})
    assert response.status_code == 400
    assert fake_spotify.calls == []


# -----------------------------------------------------------------------------
# Top tracks / albums / artists
# -----------------------------------------------------------------------------


def test_top_tracks_default_time_range(client, fake_spotify):
    _login(client)
    fake_spotify.responses["top_tracks"] = {"items": [make_track("t1", "A1")]}
    response = client.get("/api/spotify/top-tracks")
    body = response.json()
    assert response.status_code == 200
    assert body["time_range"] == "medium_term"
    assert body["total"] == 1
    track = body["tracks"][0]
    assert track["artist"] == "Artist"
    assert track["album"]["id"] == "A1"
    assert track["image_url"] == "https://i.scdn.co/A1.jpg"
    assert fake_spotify.calls == [("top_tracks", {"limit": 50, "time_range": "medium_term"})]


def test_top_albums_groups_top_tracks(client, fake_spotify):
    _login(client)
    fake_spotify.responses["top_tracks"] = {
        "items": [make_track("t1", "A1"), make_track("t2", "A2"), make_track("t3", "A1")]
    }
    response = client.get("/api/spotify/top-albums", params={"time_range": "short_term"})
    body = response.json()
    assert response.status_code == 200
    assert body["time_range"] == "short_term"
    assert body["total"] == 2
    assert [(a["id"], a["track_count"]) for a in body["albums"]] == [("A1", 2), ("A2", 1)]


def test_top_artists(client, fake_spotify):
    _login(client)
    fake_spotify.responses["top_artists"] = {
        "items": [
            {
                "id": "ar1",
                "name": "Robyn",
                "genres": ["dance pop"],
                "popularity": 68,
                "followers": {"total": 99},
                "external_urls": {},
                "images": [{"url": "https://i.scdn.co/ar1.jpg"}],
            }
        ]
    }
    response = client.get("/api/spotify/top-artists", params={"time_range": "long_term"})
    body = response.json()
    assert body["total"] == 1
    assert body["artists"][0]["followers"] == 99
    assert body["artists"][0]["image_url"] == "https://i.scdn.co/ar1.jpg"
    assert body["time_range"] == "long_term"


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}
