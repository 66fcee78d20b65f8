"""Session cookie options.

Both token cookies are http-only. In production they are Secure with
SameSite=None (the frontend lives on another origin); elsewhere they are
SameSite=Lax and allowed over plain HTTP.
"""

from starlette.responses import Response

from auth.config import AuthConfig

ACCESS_TOKEN_COOKIE = "seller_access_token"
REFRESH_TOKEN_COOKIE = "seller_refresh_token"


class CookiePolicy:
    """Builds and applies cookie options for the seller token cookies."""

    def __init__(self, config: AuthConfig):
        self._config = config

    def _common_options(self) -> dict:
        return {
            "httponly": True,
            "secure": self._config.is_production,
            "samesite": "none" if self._config.is_production else "lax",
        }

    def access_cookie_options(self, on_signin: bool = False) -> dict:
        """Options for the access-token cookie.

        At signin the cookie outlives the token it carries
        (signin_access_cookie_hours); on refresh it matches the token.
        """
        if on_signin:
            max_age = self._config.signin_access_cookie_hours * 3600
        else:
            max_age = self._config.access_token_expire_minutes * 60
        return {**self._common_options(), "max_age": max_age}

    def refresh_cookie_options(self) -> dict:
        """Options for the refresh-token cookie."""
        max_age = self._config.refresh_token_expire_days * 24 * 3600
        return {**self._common_options(), "max_age": max_age}

    def set_session_cookies(
        self,
        response: Response,
        access_token: str,
        refresh_token: str,
        on_signin: bool = False,
    ) -> None:
        response.set_cookie(ACCESS_TOKEN_COOKIE, access_token, **self.access_cookie_options(on_signin))
        response.set_cookie(REFRESH_TOKEN_COOKIE, refresh_token, **self.refresh_cookie_options())

    def clear_session_cookies(self, response: Response) -> None:
        """Expire both cookies immediately."""
        common = self._common_options()
        for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
            response.delete_cookie(name, **common)
