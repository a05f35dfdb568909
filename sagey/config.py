from __future__ import annotations

import os

from dotenv import load_dotenv


load_dotenv()


SPOTIFY_SCOPES = [
    "user-read-email",
    "user-read-recently-played",
    "user-top-read",
    "user-library-read",
    "playlist-read-private",
    "user-read-currently-playing",
]

DEV_REDIRECT_URI = "http://localhost:8000/api/spotify/callback"

ACCESS_TOKEN_COOKIE = "spotify_access_token"
REFRESH_TOKEN_COOKIE = "spotify_refresh_token"
USER_INFO_COOKIE = "spotify_user_info"
AUTH_STATE_COOKIE = "spotify_auth_state"
CODE_VERIFIER_COOKIE = "spotify_code_verifier"

SESSION_COOKIES = (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    USER_INFO_COOKIE,
    AUTH_STATE_COOKIE,
    CODE_VERIFIER_COOKIE,
)

AUTH_STATE_MAX_AGE = 600
DEFAULT_ACCESS_TOKEN_MAX_AGE = 3600
LONG_LIVED_MAX_AGE = 60 * 60 * 24 * 30

TIME_RANGES = ("short_term", "medium_term", "long_term")
DEFAULT_TIME_RANGE = "medium_term"
PAGE_LIMIT = 50
MAX_TOP_ALBUMS = 50


def is_production() -> bool:
    return "production" in (os.getenv("APP_ENV"), os.getenv("VERCEL_ENV"))


def redirect_uri() -> str:
    """Callback URL registered with Spotify.

    SPOTIFY_REDIRECT_URI wins; otherwise PRODUCTION_REDIRECT_URI is used in
    production and the local development URL everywhere else.
    """
    explicit = os.getenv("SPOTIFY_REDIRECT_URI")
    if explicit:
        return explicit
    if is_production() and os.getenv("PRODUCTION_REDIRECT_URI"):
        return os.getenv("PRODUCTION_REDIRECT_URI")
    return DEV_REDIRECT_URI


def frontend_url() -> str:
    return os.getenv("FRONTEND_URL") or "/"


def request_timeout() -> float:
    try:
        return float(os.getenv("SPOTIFY_REQUEST_TIMEOUT", "10"))
    except ValueError:
        return 10.0


def cors_origins() -> list[str]:
    configured = os.getenv("CORS_ORIGINS")
    if configured:
        return [origin.strip() for origin in configured.split(",") if origin.strip()]
    # Front-end origin when it is an absolute URL, otherwise any origin
    frontend = os.getenv("FRONTEND_URL")
    if frontend and frontend.startswith("http"):
        return [frontend]
    return ["*"]
