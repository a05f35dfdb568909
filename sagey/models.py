from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class TokenInfo(BaseModel):
    access_token: str = Field(..., description="Spotify access token")
    refresh_token: str | None = Field(None, description="Spotify refresh token")
    expires_in: int | None = Field(None, description="Lifetime of the access token in seconds")
    expires_at: int | None = Field(None, description="Epoch seconds when the token expires")
    scope: str | None = None
    token_type: str | None = None


class UserProfile(BaseModel):
    id: str
    display_name: str | None = None
    email: str | None = None
    followers: int | None = None
    images: list[dict[str, Any]] = Field(default_factory=list)
    country: str | None = None
    product: str | None = None


class AlbumSummary(BaseModel):
    id: str | None = None
    name: str | None = None
    release_date: str | None = None
    images: list[dict[str, Any]] = Field(default_factory=list)


class TrackView(BaseModel):
    id: str | None = None
    name: str | None = None
    artist: str | None = None
    album: AlbumSummary
    popularity: int | None = None
    duration_ms: int | None = None
    external_urls: dict[str, str] = Field(default_factory=dict)
    preview_url: str | None = None
    image_url: str | None = None


class AlbumView(BaseModel):
    id: str
    name: str | None = None
    artist: str
    artists: str
    release_date: str | None = None
    total_tracks: int | None = None
    external_urls: dict[str, str] = Field(default_factory=dict)
    image_url: str | None = None
    album_type: str | None = None
    track_count: int = Field(1, description="How many of the user's top tracks come from this album")


class ArtistView(BaseModel):
    id: str | None = None
    name: str | None = None
    genres: list[str] = Field(default_factory=list)
    popularity: int | None = None
    followers: int | None = None
    external_urls: dict[str, str] = Field(default_factory=dict)
    image_url: str | None = None


class StatusResponse(BaseModel):
    connected: bool
    user: UserProfile | None = None
    error: str | None = None


class RecentTracksResponse(BaseModel):
    tracks: list[dict[str, Any]]
    total: int


class TopTracksResponse(BaseModel):
    tracks: list[TrackView]
    total: int
    time_range: str


class TopAlbumsResponse(BaseModel):
    albums: list[AlbumView]
    total: int
    time_range: str


class TopArtistsResponse(BaseModel):
    artists: list[ArtistView]
    total: int
    time_range: str


class SuccessResponse(BaseModel):
    success: bool = True


class LogoutResponse(BaseModel):
    success: bool = True
    message: str
    warning: str | None = None
