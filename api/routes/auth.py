"""
api/routes/auth.py -- Registration, login and token-introspection endpoints.

Routes:
  POST /register           -- self-registration; returns a token        (public)
  POST /api/login          -- email/password login; returns a token     (public)
  POST /api/logout         -- acknowledged only; tokens stay valid      (public)
  GET  /api/verify-token   -- token + user still exists                 (bearer)
  GET  /api/profile        -- caller's profile                          (bearer)

/register lives outside /api for compatibility with existing clients, so this
module exposes two routers: `register_router` (mounted at the base path) and
`router` (mounted under /api).

Security:
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify(). Unknown email and wrong password return the same
  401 body.
  Cache-Control: no-store on every response that carries a token.
  verify-token and profile re-fetch the user row: a valid token for a deleted
  user is rejected with 404 even though its signature still checks out.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    ProfileResponse,
    RegisterRequest,
    RoleEnum,
    UserPublic,
    VerifyTokenResponse,
)
from auth.dependencies import get_current_identity
from auth.models import ROLE_STUDENT, Identity, User
from auth.store import UserStore
from auth.tokens import PasswordHasher, TokenService, authenticate_user
from core.errors import AuthenticationError, AuthorizationError, NotFoundError, require_fields

logger = logging.getLogger("campusnav.auth")

# Auth policy:
# - POST /register:          public (can be switched off with SELF_REGISTRATION_ENABLED)
# - POST /api/login:         public
# - POST /api/logout:        public, decorative
# - GET  /api/verify-token:  bearer (get_current_identity)
# - GET  /api/profile:       bearer (get_current_identity)
register_router = APIRouter()
router = APIRouter()

_REGISTRATION_FIELDS = ("nombre", "apellido", "email", "cedula", "password")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def public_user(user: User) -> UserPublic:
    return UserPublic(id=user.id, nombre=user.nombre, email=user.email, rol=user.rol)


def create_account(request: Request, body: RegisterRequest, issue_token: bool) -> tuple[User, str | None]:
    """Validate, hash and insert a new user. Shared by /register and admin user creation.

    When issue_token is True a registration token ({email}) is minted first
    and its copy is stored on the new row.
    Raises ValidationError (400) for missing fields, ConflictError (409) when
    email or cedula is taken.
    """
    require_fields(body.model_dump(), _REGISTRATION_FIELDS)
    hasher: PasswordHasher = request.app.state.hasher
    tokens: TokenService = request.app.state.tokens
    user_store: UserStore = request.app.state.user_store

    token = tokens.issue_registration_token(body.email) if issue_token else None
    user = user_store.create_user(
        User(
            nombre=body.nombre,
            apellido=body.apellido,
            email=body.email,
            cedula=body.cedula,
            rol=(body.rol.value if body.rol else ROLE_STUDENT),
            hashed_password=hasher.hash(body.password),
            token=token,
        )
    )
    return user, token


def _lookup_identity(request: Request, identity: Identity) -> User:
    """Re-fetch the user behind a verified token. 404 if the row is gone."""
    user_store: UserStore = request.app.state.user_store
    if identity.user_id is not None:
        user = user_store.get_by_id(identity.user_id)
    else:
        user = user_store.get_by_email(identity.email)
    if user is None:
        raise NotFoundError("User not found.")
    return user


def _token_response(status_code: int, payload: AuthResponse) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content=payload.model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@register_router.post("/register", response_model=AuthResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create a student account and return a token bound to its email.

    Self-registering as admin is refused unless ALLOW_SELF_ADMIN_REGISTRATION
    is on. A duplicate email or cedula returns 409.
    """
    settings = request.app.state.settings
    if not settings.self_registration_enabled:
        raise AuthorizationError("Self-registration is disabled.", code="registration_disabled")
    if body.rol == RoleEnum.admin and not settings.allow_self_admin_registration:
        raise AuthorizationError("Admins only.")

    user, token = create_account(request, body, issue_token=True)
    logger.info("Registered user_id=%s role=%s", user.id, user.rol)
    return _token_response(
        201,
        AuthResponse(message="User registered.", token=token, usuario=public_user(user)),
    )


@router.post("/login", response_model=AuthResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password and return a {id, email} token.

    Uses authenticate_user() which includes timing equalization. The same
    generic error is returned for an unknown email and a wrong password.
    """
    require_fields(body.model_dump(), ("email", "password"))
    user = authenticate_user(request.app.state.user_store, request.app.state.hasher, body.email, body.password)
    if user is None:
        raise AuthenticationError("Invalid email or password.", code="bad_credentials")

    tokens: TokenService = request.app.state.tokens
    token = tokens.issue_login_token(user.id, user.email)
    logger.info("Login user_id=%s", user.id)
    return _token_response(
        200,
        AuthResponse(message="Login successful.", token=token, usuario=public_user(user)),
    )


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request) -> MessageResponse:
    """Acknowledge a logout. Tokens are self-expiring and are NOT revoked here;
    the client is expected to discard its copy."""
    if request.headers.get("Authorization"):
        logger.info("Logout received from %s", request.client.host if request.client else "unknown")
    return MessageResponse(message="Session closed.")


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/verify-token", response_model=VerifyTokenResponse)
def verify_token(request: Request, identity: Identity = Depends(get_current_identity)) -> VerifyTokenResponse:
    """Confirm the token is valid AND its user still exists."""
    user = _lookup_identity(request, identity)
    return VerifyTokenResponse(valid=True, user=public_user(user))


@router.get("/profile", response_model=ProfileResponse)
def profile(request: Request, identity: Identity = Depends(get_current_identity)) -> ProfileResponse:
    """Return the caller's name, surname, email and role."""
    user = _lookup_identity(request, identity)
    return ProfileResponse(nombre=user.nombre, apellido=user.apellido, email=user.email, rol=user.rol)


