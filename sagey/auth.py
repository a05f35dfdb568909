import logging
import os
import secrets
from urllib.parse import urlencode

import requests
from fastapi import APIRouter, Cookie, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from sagey import config, cookies, spotify_client
from sagey.errors import internal_error
from sagey.models import LogoutResponse, SuccessResponse, TokenInfo


log = logging.getLogger(__name__)


def get_spotify_oauth() -> SpotifyOAuth:
    """Create and return a configured SpotifyOAuth instance.

    Uses environment variables:
    - SPOTIFY_CLIENT_ID
    - SPOTIFY_CLIENT_SECRET
    - SPOTIFY_REDIRECT_URI (see ``config.redirect_uri`` for the fallback)

    Tokens are kept in a throwaway memory cache; the browser cookies are the
    only place they are stored.
    """
    return SpotifyOAuth(
        client_id=os.getenv("SPOTIFY_CLIENT_ID"),
        client_secret=os.getenv("SPOTIFY_CLIENT_SECRET"),
        redirect_uri=config.redirect_uri(),
        scope=config.SPOTIFY_SCOPES,
        cache_handler=MemoryCacheHandler(),
        show_dialog=True,
        requests_session=requests.Session(),
        requests_timeout=config.request_timeout(),
    )


def _frontend_redirect(**params: str) -> RedirectResponse:
    return RedirectResponse(f"{config.frontend_url()}?{urlencode(params)}", status_code=302)


def _callback_error(reason: str) -> RedirectResponse:
    return _frontend_redirect(spotify="error", reason=reason)


def _oauth_error_status(exc: SpotifyOauthError) -> int:
    # spotipy raises SpotifyOauthError while handling the requests HTTPError
    response = getattr(exc.__context__, "response", None)
    if response is not None:
        return response.status_code
    return 400


router = APIRouter(prefix="/api/spotify")


@router.get("/auth")
async def login() -> RedirectResponse:
    """Redirect the user to Spotify's authorization URL and remember the state."""
    if not os.getenv("SPOTIFY_CLIENT_ID"):
        log.error("Missing SPOTIFY_CLIENT_ID environment variable")
        return _callback_error("config_error")

    state = secrets.token_urlsafe(16)
    auth_url = get_spotify_oauth().get_authorize_url(state=state)
    log.info("Spotify auth redirect (redirect_uri=%s)", config.redirect_uri())

    response = RedirectResponse(auth_url, status_code=302)
    cookies.set_session_cookie(
        response, config.AUTH_STATE_COOKIE, state, max_age=config.AUTH_STATE_MAX_AGE
    )
    return response


@router.get("/callback")
def callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    stored_state: str | None = Cookie(default=None, alias=config.AUTH_STATE_COOKIE),
) -> RedirectResponse:
    """Handle Spotify's redirect: check the state, exchange the code, set cookies.

    Every outcome is a redirect back to the front-end with ``spotify=connected``
    or ``spotify=error&reason=<reason>``.
    """
    if error:
        log.warning("Spotify authorization error: %s", error)
        return _callback_error("auth_error")
    if not code or not state:
        log.warning("Callback missing parameters (code=%s, state=%s)", bool(code), bool(state))
        return _callback_error("missing_params")
    if not os.getenv("SPOTIFY_CLIENT_ID") or not os.getenv("SPOTIFY_CLIENT_SECRET"):
        log.error("Missing Spotify client credentials")
        return _callback_error("config_error")
    if not stored_state or not secrets.compare_digest(state.encode(), stored_state.encode()):
        log.warning("State mismatch in Spotify callback (cookie present=%s)", bool(stored_state))
        return _callback_error("state_mismatch")

    try:
        try:
            token_info = get_spotify_oauth().get_access_token(code, check_cache=False)
        except SpotifyOauthError as exc:
            log.warning(
                "Token exchange failed: status=%s error=%s",
                _oauth_error_status(exc),
                exc.error,
            )
            return _callback_error("token_exchange")

        try:
            token = TokenInfo.model_validate(token_info or {})
        except ValidationError as exc:
            log.error("Invalid token response: %s", exc.errors())
            return _callback_error("invalid_token")
        if not token.access_token:
            log.error("Token response did not contain an access token")
            return _callback_error("invalid_token")

        try:
            profile = spotify_client.get_current_user_profile(token.access_token)
        except SpotifyException as exc:
            log.warning("Profile fetch failed: status=%s msg=%s", exc.http_status, exc.msg)
            return _callback_error("profile_fetch")

        response = _frontend_redirect(spotify="connected")
        cookies.set_token_cookies(response, token)
        cookies.set_user_info_cookie(response, profile)
        cookies.expire_cookie(response, config.AUTH_STATE_COOKIE)
        log.info("Spotify authentication successful for user %s", profile.get("id"))
        return response
    except Exception:
        log.exception("Unexpected error in Spotify callback")
        return _callback_error("server_error")


@router.post("/refresh", response_model=SuccessResponse)
def refresh(
    response: Response,
    refresh_token: str | None = Cookie(default=None, alias=config.REFRESH_TOKEN_COOKIE),
):
    """Mint a new access token from the refresh-token cookie.

    Provider failures are relayed with the provider's status. When Spotify
    rotates the refresh token the new one replaces the stored cookie.
    """
    if not refresh_token:
        return JSONResponse({"error": "Refresh token not found"}, status_code=401)
    if not os.getenv("SPOTIFY_CLIENT_ID") or not os.getenv("SPOTIFY_CLIENT_SECRET"):
        log.error("Missing Spotify client credentials")
        raise internal_error()

    try:
        token_info = get_spotify_oauth().refresh_access_token(refresh_token)
    except SpotifyOauthError as exc:
        status = _oauth_error_status(exc)
        log.warning("Token refresh rejected: status=%s error=%s", status, exc.error)
        return JSONResponse(
            {"error": exc.error, "error_description": exc.error_description},
            status_code=status,
        )
    except requests.exceptions.RequestException as exc:
        log.error("Token refresh failed: %s", exc)
        raise internal_error()
    except Exception:
        log.exception("Unexpected error refreshing the access token")
        raise internal_error()

    try:
        token = TokenInfo.model_validate(token_info)
    except ValidationError as exc:
        log.error("Invalid refresh response: %s", exc.errors())
        raise internal_error()

    # spotipy echoes the old refresh token back when Spotify does not rotate it
    if token.refresh_token == refresh_token:
        token = token.model_copy(update={"refresh_token": None})
    cookies.set_token_cookies(response, token)
    log.info("Access token refreshed (refresh token rotated=%s)", bool(token.refresh_token))
    return SuccessResponse()


@router.post("/logout", response_model=LogoutResponse)
def logout(response: Response):
    """Expire every Spotify session cookie.

    Logout is terminal for the client, so a failure while clearing is logged
    and the cookies are cleared the plain way instead of surfacing an error.
    """
    try:
        cookies.expire_session_cookies(response)
    except Exception:
        log.exception("Error while clearing Spotify cookies")
        for name in config.SESSION_COOKIES:
            cookies.expire_cookie(response, name)
        return LogoutResponse(
            message="Session cleared locally but server cleanup may have failed",
            warning="Logout completed with warnings",
        )
    log.info("Cleared Spotify session cookies")
    return LogoutResponse(message="Successfully logged out from Spotify")
