"""Pure reshaping of Spotify Web API payloads into the views served to the UI."""

from __future__ import annotations

from typing import Any, Iterable, List

from sagey.config import MAX_TOP_ALBUMS
from sagey.models import AlbumSummary, AlbumView, ArtistView, TrackView, UserProfile


UNKNOWN_ARTIST = "Unknown Artist"


def _first_image_url(images: list | None) -> str | None:
    if not images:
        return None
    return images[0].get("url")


def _first_artist_name(artists: list | None) -> str | None:
    if not artists:
        return None
    return artists[0].get("name")


def to_user_profile(profile: dict) -> UserProfile:
    return UserProfile(
        id=profile["id"],
        display_name=profile.get("display_name"),
        email=profile.get("email"),
        followers=(profile.get("followers") or {}).get("total"),
        images=profile.get("images") or [],
        country=profile.get("country"),
        product=profile.get("product"),
    )


def to_track_view(track: dict) -> TrackView:
    album = track.get("album") or {}
    return TrackView(
        id=track.get("id"),
        name=track.get("name"),
        artist=_first_artist_name(track.get("artists")),
        album=AlbumSummary(
            id=album.get("id"),
            name=album.get("name"),
            release_date=album.get("release_date"),
            images=album.get("images") or [],
        ),
        popularity=track.get("popularity"),
        duration_ms=track.get("duration_ms"),
        external_urls=track.get("external_urls") or {},
        preview_url=track.get("preview_url"),
        image_url=_first_image_url(album.get("images")),
    )


def to_artist_view(artist: dict) -> ArtistView:
    return ArtistView(
        id=artist.get("id"),
        name=artist.get("name"),
        genres=artist.get("genres") or [],
        popularity=artist.get("popularity"),
        followers=(artist.get("followers") or {}).get("total"),
        external_urls=artist.get("external_urls") or {},
        image_url=_first_image_url(artist.get("images")),
    )


def _to_album_view(album: dict) -> AlbumView:
    artists = album.get("artists") or []
    names = [a.get("name") for a in artists if a.get("name")]
    return AlbumView(
        id=album["id"],
        name=album.get("name"),
        artist=_first_artist_name(artists) or UNKNOWN_ARTIST,
        artists=", ".join(names) or UNKNOWN_ARTIST,
        release_date=album.get("release_date"),
        total_tracks=album.get("total_tracks"),
        external_urls=album.get("external_urls") or {},
        image_url=_first_image_url(album.get("images")),
        album_type=album.get("album_type"),
        track_count=1,
    )


def group_top_albums(tracks: Iterable[dict[str, Any]], limit: int = MAX_TOP_ALBUMS) -> List[AlbumView]:
    """Collapse top tracks into the albums they belong to.

    Albums keep the order in which they were first seen; ``track_count`` is the
    number of tracks that pointed at the album. The result is sorted by
    ``track_count`` descending (``sorted`` is stable, so ties keep first-seen
    order) and truncated to ``limit``.
    """
    albums: dict[str, AlbumView] = {}
    for track in tracks:
        album = track.get("album")
        if not album or not album.get("id"):
            continue
        existing = albums.get(album["id"])
        if existing is None:
            albums[album["id"]] = _to_album_view(album)
        else:
            existing.track_count += 1
    ranked = sorted(albums.values(), key=lambda a: a.track_count, reverse=True)
    return ranked[:limit]
