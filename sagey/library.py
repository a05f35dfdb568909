import logging
from contextlib import contextmanager
from typing import Iterator, Literal

import requests
from fastapi import APIRouter, Cookie, Depends, Query
from spotipy.exceptions import SpotifyException

from sagey import config, spotify_client
from sagey.errors import SpotifyProxyError, from_spotify_exception, internal_error, missing_token
from sagey.models import (
    RecentTracksResponse,
    StatusResponse,
    TopAlbumsResponse,
    TopArtistsResponse,
    TopTracksResponse,
)
from sagey.transforms import group_top_albums, to_artist_view, to_track_view, to_user_profile


log = logging.getLogger(__name__)

TimeRange = Literal["short_term", "medium_term", "long_term"]


def require_access_token(
    access_token: str | None = Cookie(default=None, alias=config.ACCESS_TOKEN_COOKIE),
) -> str:
    """Return the access-token cookie or fail with 401."""
    if not access_token:
        raise missing_token()
    return access_token


@contextmanager
def spotify_call(resource: str) -> Iterator[None]:
    """Translate anything raised while talking to Spotify into a SpotifyProxyError."""
    try:
        yield
    except SpotifyProxyError:
        raise
    except SpotifyException as exc:
        raise from_spotify_exception(exc, resource) from exc
    except requests.exceptions.RequestException as exc:
        log.error("Network error fetching %s: %s", resource, exc)
        raise internal_error() from exc
    except Exception as exc:
        log.exception("Unexpected error fetching %s", resource)
        raise internal_error() from exc


router = APIRouter(prefix="/api/spotify")


@router.get("/status", response_model=StatusResponse, response_model_exclude_unset=True)
def status(
    access_token: str | None = Cookie(default=None, alias=config.ACCESS_TOKEN_COOKIE),
) -> StatusResponse:
    """Report whether the access-token cookie is still accepted by Spotify.

    Every failure is folded into ``connected: false``; the cause is only logged.
    """
    if not access_token:
        log.info("Status check: no access token cookie")
        return StatusResponse(connected=False, user=None)

    try:
        profile = spotify_client.get_current_user_profile(access_token)
    except SpotifyException as exc:
        log.info("Status check: token rejected (status=%s msg=%s)", exc.http_status, exc.msg)
        return StatusResponse(connected=False, user=None, error="Token expired")
    except requests.exceptions.RequestException as exc:
        log.warning("Status check: network error %s", exc)
        return StatusResponse(connected=False, user=None, error="Token expired")
    except Exception:
        log.exception("Status check failed")
        return StatusResponse(connected=False, user=None, error="Internal server error")

    try:
        user = to_user_profile(profile)
    except Exception:
        log.exception("Status check: unexpected profile payload")
        return StatusResponse(connected=False, user=None, error="Internal server error")
    return StatusResponse(connected=True, user=user)


@router.get("/recent-tracks", response_model=RecentTracksResponse)
def recent_tracks(
    before: int | None = Query(None, ge=0, description="Unix ms cursor: plays before this time"),
    after: int | None = Query(None, ge=0, description="Unix ms cursor: plays after this time"),
    access_token: str = Depends(require_access_token),
) -> RecentTracksResponse:
    if before is not None and after is not None:
        raise SpotifyProxyError(400, "Only one of before or after may be given")
    with spotify_call("recent tracks"):
        sp = spotify_client.create_spotify_client(access_token)
        data = sp.current_user_recently_played(limit=config.PAGE_LIMIT, after=after, before=before)
        items = data.get("items") or []
    return RecentTracksResponse(tracks=items, total=len(items))


@router.get("/top-tracks", response_model=TopTracksResponse)
def top_tracks(
    time_range: TimeRange = Query(config.DEFAULT_TIME_RANGE),
    access_token: str = Depends(require_access_token),
) -> TopTracksResponse:
    with spotify_call("top tracks"):
        sp = spotify_client.create_spotify_client(access_token)
        data = sp.current_user_top_tracks(limit=config.PAGE_LIMIT, time_range=time_range)
        tracks = [to_track_view(item) for item in data.get("items") or []]
    return TopTracksResponse(tracks=tracks, total=len(tracks), time_range=time_range)


@router.get("/top-albums", response_model=TopAlbumsResponse)
def top_albums(
    time_range: TimeRange = Query(config.DEFAULT_TIME_RANGE),
    access_token: str = Depends(require_access_token),
) -> TopAlbumsResponse:
    """Albums ranked by how many of the user's top tracks they contain."""
    with spotify_call("top tracks"):
        sp = spotify_client.create_spotify_client(access_token)
        data = sp.current_user_top_tracks(limit=config.PAGE_LIMIT, time_range=time_range)
        albums = group_top_albums(data.get("items") or [])
    return TopAlbumsResponse(albums=albums, total=len(albums), time_range=time_range)


@router.get("/top-artists", response_model=TopArtistsResponse)
def top_artists(
    time_range: TimeRange = Query(config.DEFAULT_TIME_RANGE),
    access_token: str = Depends(require_access_token),
) -> TopArtistsResponse:
    with spotify_call("top artists"):
        sp = spotify_client.create_spotify_client(access_token)
        data = sp.current_user_top_artists(limit=config.PAGE_LIMIT, time_range=time_range)
        artists = [to_artist_view(item) for item in data.get("items") or []]
    return TopArtistsResponse(artists=artists, total=len(artists), time_range=time_range)
