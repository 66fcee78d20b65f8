"""FastAPI Depends() helpers for seller authentication.

The access token is read from the seller_access_token cookie set at signin,
falling back to an Authorization: Bearer header for API clients.

current_seller() resolves the token to a Seller from the persistent store
and raises BadRequestError("please login") on any failure.
restrict_to() wraps it and raises ForbiddenError when the role is not allowed.
"""

from typing import Callable

from fastapi import Request

from auth.cookies import ACCESS_TOKEN_COOKIE
from auth.service import AuthService, RequestContext
from auth.types import Seller, SellerRole


def request_context(request: Request) -> RequestContext:
    """Client IP and User-Agent for security events."""
    ip_address = request.client.host if request.client else None
    return RequestContext(ip_address=ip_address, user_agent=request.headers.get("User-Agent"))


def _access_token_from(request: Request) -> str | None:
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:] or None
    return None


class SellerGuard:
    """Authentication and role dependencies bound to an AuthService."""

    def __init__(self, auth_service: AuthService):
        self._auth_service = auth_service

    def current_seller(self, request: Request) -> Seller:
        """Require an authenticated seller.

        Use as a FastAPI dependency:
            @router.get("/me")
            def route(seller: Seller = Depends(guard.current_seller)): ...
        """
        seller = self._auth_service.authenticate(_access_token_from(request))
        request.state.seller = seller
        return seller

    def restrict_to(self, *roles: SellerRole) -> Callable[[Request], Seller]:
        """Dependency requiring an authenticated seller with one of roles."""

        def dependency(request: Request) -> Seller:
            seller = self.current_seller(request)
            self._auth_service.check_role(seller, roles, request_context(request))
            return seller

        return dependency
