import pytest
from fastapi.testclient import TestClient

from sagey import spotify_client
from sagey.main import app


class FakeSpotify:
    """Stands in for spotipy.Spotify; returns canned payloads or raises ``error``."""

    def __init__(self):
        self.responses = {}
        self.error = None
        self.calls = []
        self.tokens = []

    def _respond(self, name, **kwargs):
        self.calls.append((name, kwargs))
        if self.error is not None:
            raise self.error
        return self.responses[name]

    def me(self):
        return self._respond("me")

    def current_user_recently_played(self, limit=50, after=None, before=None):
        return self._respond("recently_played", limit=limit, after=after, before=before)

    def current_user_top_tracks(self, limit=20, offset=0, time_range="medium_term"):
        return self._respond("top_tracks", limit=limit, time_range=time_range)

    def current_user_top_artists(self, limit=20, offset=0, time_range="medium_term"):
        return self._respond("top_artists", limit=limit, time_range=time_range)


@pytest.fixture(autouse=True)
def spotify_env(monkeypatch):
    monkeypatch.setenv("SPOTIFY_CLIENT_ID", "test-client-id")
    monkeypatch.setenv("SPOTIFY_CLIENT_SECRET", "test-client-secret")
    monkeypatch.setenv("SPOTIFY_REDIRECT_URI", "http://localhost:8000/api/spotify/callback")
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("VERCEL_ENV", raising=False)
    monkeypatch.delenv("FRONTEND_URL", raising=False)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def fake_spotify(monkeypatch):
    fake = FakeSpotify()

    def _create(access_token):
        fake.tokens.append(access_token)
        return fake

    monkeypatch.setattr(spotify_client, "create_spotify_client", _create)
    return fake


def set_cookies(response):
    return response.headers.get_list("set-cookie")


def cookie_headers(response, name):
    return [h for h in set_cookies(response) if h.startswith(f"{name}=")]


def make_track(track_id, album_id, album_name=None, artists=("Artist",)):
    return {
        "id": track_id,
        "name": f"Track {track_id}",
        "artists": [{"name": a} for a in artists],
        "album": {
            "id": album_id,
            "name": album_name or f"Album {album_id}",
            "artists": [{"name": a} for a in artists],
            "release_date": "2020-01-01",
            "total_tracks": 10,
            "external_urls": {"spotify": f"https://open.spotify.com/album/{album_id}"},
            "images": [{"url": f"https://i.scdn.co/{album_id}.jpg"}],
            "album_type": "album",
        },
        "popularity": 50,
        "duration_ms": 180000,
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
        "preview_url": None,
    }
