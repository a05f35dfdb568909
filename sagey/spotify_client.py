from __future__ import annotations

import requests
import spotipy

from sagey import config


def create_spotify_client(access_token: str) -> spotipy.Spotify:
    """Create a Spotipy client using a raw access token.

    A plain ``requests.Session`` is passed so spotipy does not mount its
    retrying adapter; provider statuses reach the caller unchanged.
    """
    return spotipy.Spotify(
        auth=access_token,
        requests_session=requests.Session(),
        requests_timeout=config.request_timeout(),
    )


def get_current_user_profile(access_token: str) -> dict:
    """Fetch the current user's profile using the given token."""
    client = create_spotify_client(access_token)
    return client.me()
