"""HTTP routes for seller authentication."""

from fastapi import APIRouter, Depends, Request, Response

from api.base import success_response
from auth.cookies import REFRESH_TOKEN_COOKIE, CookiePolicy
from auth.dependencies import SellerGuard, request_context
from auth.service import AuthService
from auth.types import ActivationRequest, Seller, SellerRole, SigninRequest, SignupRequest


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def create_seller_auth_router(
    auth_service: AuthService,
    guard: SellerGuard,
    cookie_policy: CookiePolicy,
) -> APIRouter:
    """Create seller auth router with injected service.

    Handlers are plain functions: the service makes blocking store, cache and
    email calls, so they run in the threadpool.
    """
    router = APIRouter(tags=["seller-auth"])
    seller_only = guard.restrict_to(SellerRole.SELLER)

    @router.post("/signup")
    def signup(request: Request, body: SignupRequest):
        """Email a verification code and return the activation token."""
        result = auth_service.signup(
            fname=body.fname,
            lname=body.lname,
            email=body.email,
            password=body.password,
            context=request_context(request),
        )
        return success_response(
            {"token": result.token, "message": result.message},
            _request_id(request),
        )

    @router.post("/activation", status_code=201)
    def activate(request: Request, body: ActivationRequest):
        """Check the OTP and create the seller account."""
        seller = auth_service.activate(
            activation_token=body.activation_token,
            otp=body.otp,
            context=request_context(request),
        )
        return success_response(
            {
                "seller": seller.model_dump(mode="json"),
                "message": f"Congratulations, {seller.fname}! Your account has been successfully activated.",
            },
            _request_id(request),
        )

    @router.post("/signin")
    def signin(request: Request, response: Response, body: SigninRequest):
        """Verify credentials, set both token cookies.

        The access token is also returned in the body for API clients.
        """
        session = auth_service.signin(
            email=body.email,
            password=body.password,
            context=request_context(request),
        )
        cookie_policy.set_session_cookies(
            response,
            session.access_token,
            session.refresh_token,
            on_signin=True,
        )
        return success_response(
            {
                "seller": session.seller.model_dump(mode="json"),
                "accessToken": session.access_token,
                "message": f"Welcome back {session.seller.fname}.",
            },
            _request_id(request),
        )

    @router.post("/logout")
    def logout(request: Request, response: Response, seller: Seller = Depends(seller_only)):
        """Delete the session snapshot and clear cookies."""
        auth_service.logout(seller, request_context(request))
        cookie_policy.clear_session_cookies(response)
        return success_response(
            {"message": "You have been successfully logged out."},
            _request_id(request),
        )

    @router.get("/me")
    def get_seller_info(request: Request, seller: Seller = Depends(seller_only)):
        """Current seller's profile, from the session cache when present."""
        profile = auth_service.get_seller_info(seller)
        return success_response(
            {
                "seller": profile.model_dump(mode="json"),
                "message": "Here is your account information. Let us know if you need any changes.",
            },
            _request_id(request),
        )

    @router.get("/update-access-token")
    def update_access_token(request: Request, response: Response):
        """Exchange the refresh-token cookie for a fresh token pair."""
        session = auth_service.refresh_access_token(
            request.cookies.get(REFRESH_TOKEN_COOKIE),
            context=request_context(request),
        )
        cookie_policy.set_session_cookies(response, session.access_token, session.refresh_token)
        return success_response(
            {
                "accessToken": session.access_token,
                "message": "Your session has been refreshed.",
            },
            _request_id(request),
        )

    return router
