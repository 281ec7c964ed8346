"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

get_current_identity() walks the bearer-token state machine:

  no Authorization header            -> 401 token_required
  header without a bearer value      -> 401 token_missing
  token fails signature/expiry check -> 401 invalid_token
  token verified                     -> Identity on request.state, returned

require_admin() composes it: once authenticated, the caller's role is read
fresh from the store (never from the token, which carries no role), so a
demotion takes effect on the very next request.

  store query fails                  -> 500 internal_error
  role != admin, or user gone        -> 403 forbidden
  role == admin                      -> Identity returned

require_admin_for_writes() applies require_admin only when the
REQUIRE_ADMIN_FOR_WRITES setting is on; campus routers attach it to their
write routes.

Services are read from request.app.state (token service, user store,
settings) -- never from module globals -- so tests can substitute them.

Layer rule: no imports from web/ or campus/.
"""

from __future__ import annotations

import logging

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError

from auth.models import ROLE_ADMIN, Identity
from auth.store import UserStore
from auth.tokens import InvalidTokenError, TokenService
from core.errors import AuthenticationError, AuthorizationError, InternalError

logger = logging.getLogger("campusnav.auth")


def extract_bearer_token(request: Request) -> str:
    """Return the raw bearer token or raise the matching AuthenticationError."""
    header = request.headers.get("Authorization")
    if header is None:
        raise AuthenticationError("Token required.", code="token_required")
    scheme, _, token = header.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Token missing.", code="token_missing")
    return token


def get_current_identity(request: Request) -> Identity:
    """Require a valid bearer token. Raises 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    token = extract_bearer_token(request)
    tokens: TokenService = request.app.state.tokens
    try:
        claims = tokens.verify(token)
    except InvalidTokenError as exc:
        logger.info("Rejected bearer token on %s: %s", request.url.path, exc)
        raise AuthenticationError("Invalid or expired token.", code="invalid_token") from exc

    user_id = claims.get("id")
    identity = Identity(email=claims["email"], user_id=int(user_id) if user_id is not None else None)
    request.state.identity = identity
    return identity


def require_admin(request: Request) -> Identity:
    """Require an admin. Raises 401 if unauthenticated, 403 if not admin, 500 on store failure.

    Use as a FastAPI dependency:
        @router.delete("/admin-only")
        def route(identity: Identity = Depends(require_admin)): ...
    """
    identity = get_current_identity(request)
    user_store: UserStore = request.app.state.user_store
    try:
        role = user_store.get_role(user_id=identity.user_id, email=identity.email)
    except SQLAlchemyError as exc:
        logger.exception("Role lookup failed for %s", identity.email)
        raise InternalError("Internal error.") from exc
    if role != ROLE_ADMIN:
        raise AuthorizationError("Admins only.")
    return identity


def require_admin_for_writes(request: Request) -> Identity | None:
    """Gate a write route behind require_admin when the access policy asks for it."""
    if request.app.state.settings.require_admin_for_writes:
        return require_admin(request)
    return None
