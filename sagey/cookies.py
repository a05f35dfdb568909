from __future__ import annotations

import json
from urllib.parse import quote

from fastapi import Response

from sagey import config
from sagey.models import TokenInfo


# (httponly, samesite, force secure) combinations each cookie is expired under
CLEAR_VARIANTS = (
    (True, "lax", False),
    (False, "lax", False),
    (True, "none", True),
)
CLEAR_PATHS = ("/", "/api/spotify")


def set_session_cookie(
    response: Response,
    name: str,
    value: str,
    max_age: int,
    http_only: bool = True,
) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        path="/",
        httponly=http_only,
        secure=config.is_production(),
        samesite="lax",
    )


def set_token_cookies(response: Response, token: TokenInfo) -> None:
    """Store the access token and, when present, the refresh token."""
    set_session_cookie(
        response,
        config.ACCESS_TOKEN_COOKIE,
        token.access_token,
        max_age=token.expires_in or config.DEFAULT_ACCESS_TOKEN_MAX_AGE,
    )
    if token.refresh_token:
        set_session_cookie(
            response,
            config.REFRESH_TOKEN_COOKIE,
            token.refresh_token,
            max_age=config.LONG_LIVED_MAX_AGE,
        )


def set_user_info_cookie(response: Response, profile: dict) -> None:
    # Readable from the browser so the UI can greet the user before /status returns
    payload = json.dumps(
        {
            "user_id": profile.get("id"),
            "display_name": profile.get("display_name"),
            "email": profile.get("email"),
        }
    )
    set_session_cookie(
        response,
        config.USER_INFO_COOKIE,
        quote(payload),
        max_age=config.LONG_LIVED_MAX_AGE,
        http_only=False,
    )


def expire_cookie(response: Response, name: str) -> None:
    set_session_cookie(response, name, "", max_age=0)


def expire_session_cookies(response: Response) -> None:
    """Expire every session cookie under each attribute variant and path."""
    production = config.is_production()
    for name in config.SESSION_COOKIES:
        for path in CLEAR_PATHS:
            for http_only, same_site, force_secure in CLEAR_VARIANTS:
                response.set_cookie(
                    name,
                    "",
                    max_age=0,
                    path=path,
                    httponly=http_only,
                    secure=force_secure or production,
                    samesite=same_site,
                )
