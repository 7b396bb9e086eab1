"""
Identity API endpoints with JWT authentication.

Provides registration, login and the current-user profile. Tokens are
returned in the response body and presented back as
``Authorization: Bearer <token>``.
"""
from dataclasses import asdict

from django.http import HttpRequest
from ninja import Router
from ninja.errors import HttpError

from apps.core.responses import envelope

from .jwt_auth import get_token_issuer
from .models import User
from .schemas import AuthEnvelope, LoginIn, RegisterIn, UserEnvelope
from . import services

router = Router(tags=["Auth"])


# =============================================================================
# Helper Functions
# =============================================================================

def get_current_user(request: HttpRequest) -> User | None:
    """
    Return the user resolved by BearerTokenMiddleware, or None for an
    anonymous request.
    """
    user = getattr(request, 'user', None)
    if user is None or not user.is_authenticated:
        return None
    return user


def require_auth(request: HttpRequest) -> User:
    """
    Require authentication. Raises 401 if not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HttpError(401, "Not authorized")
    return user


# =============================================================================
# Auth Endpoints
# =============================================================================

@router.post("/register", response={201: AuthEnvelope}, by_alias=True, auth=None)
def register(request: HttpRequest, payload: RegisterIn):
    """
    Create an account. Returns the new user and a bearer token.
    """
    result = services.register_user(
        get_token_issuer(),
        name=payload.name,
        email=payload.email,
        password=payload.password,
    )
    return 201, envelope(
        {"user": asdict(result.user), "token": result.token},
        message="Account created successfully",
    )


@router.post("/login", response=AuthEnvelope, by_alias=True, auth=None)
def login(request: HttpRequest, payload: LoginIn):
    """
    Exchange email and password for a bearer token.
    """
    result = services.login_user(
        get_token_issuer(),
        email=payload.email,
        password=payload.password,
    )
    return envelope(
        {"user": asdict(result.user), "token": result.token},
        message="Login successful",
    )


@router.get("/me", response=UserEnvelope, by_alias=True, auth=None)
def get_me(request: HttpRequest):
    """
    Get current authenticated user's profile.
    """
    user = require_auth(request)
    return envelope({"user": asdict(services.user_to_dto(user))})
