"""
auth/tokens.py -- JWT issuance/verification and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry the minimal claim set -- email
       (always) and user id (login tokens only) -- plus iat and exp. The role
       is NOT a claim: the admin gate re-reads it from the store on every
       request, so a role change takes effect without re-login.

  Passwords: bcrypt directly (no passlib wrapper), cost factor 10 by default.
       verify() never raises -- a malformed digest is a mismatch.

  Both services are plain objects constructed once in the app lifespan and
  held on app.state. Nothing here reads module-level settings, so tests can
  build their own instances with a short TTL or a cheap cost factor.

Layer rule: no imports from api/, web/, or campus/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

import bcrypt
from jose import JWTError, jwt

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("campusnav.auth")

_ALGORITHM = "HS256"
_DEFAULT_TTL = timedelta(hours=1)


class InvalidTokenError(Exception):
    """Raised by TokenService.verify() for any token that must not be trusted."""


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


class PasswordHasher:
    """One-way salted bcrypt hashing with a fixed cost factor.

    Passwords longer than 72 bytes are truncated by bcrypt. The API layer caps
    password length well below that (Pydantic max_length).
    """

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds
        # Computed once so the first unknown-email login is not measurably
        # faster than later ones.
        self._dummy_hash = self.hash("campusnav_timing_dummy")

    def hash(self, plain: str) -> str:
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str | None) -> bool:
        """Return True if the plaintext matches the digest; False otherwise."""
        if not hashed:
            return False
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    def burn(self, plain: str) -> None:
        """Run one verification against a dummy digest and discard the result.

        Used when there is no stored hash to check, so the response time for
        an unknown account matches the time for a wrong password.
        """
        self.verify(plain, self._dummy_hash)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


class TokenService:
    def __init__(self, secret_key: str, ttl_seconds: int = int(_DEFAULT_TTL.total_seconds())) -> None:
        if not secret_key:
            raise ValueError("TokenService requires a non-empty secret key.")
        self._secret_key = secret_key
        self.ttl = timedelta(seconds=ttl_seconds)

    def issue(self, claims: dict[str, Any], ttl: timedelta | None = None) -> str:
        """Sign claims plus iat/exp. exp is exactly iat + ttl (whole seconds)."""
        issued_at = int(datetime.now(timezone.utc).timestamp())
        lifetime = int((ttl if ttl is not None else self.ttl).total_seconds())
        payload = dict(claims)
        payload["iat"] = issued_at
        payload["exp"] = issued_at + lifetime
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> dict[str, Any]:
        """Decode and verify a token. Raises InvalidTokenError on any failure.

        Failures: bad signature, malformed token, elapsed expiry, or a payload
        without the email claim every token we issue carries.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError as exc:
            raise InvalidTokenError(str(exc)) from exc
        if not payload.get("email"):
            raise InvalidTokenError("Token has no email claim.")
        return payload

    def issue_registration_token(self, email: str) -> str:
        return self.issue({"email": email})

    def issue_login_token(self, user_id: int, email: str) -> str:
        return self.issue({"id": user_id, "email": email})


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, hasher: PasswordHasher, email: str, password: str) -> User | None:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the email exists:
    - Unknown email: bcrypt runs against the dummy hash (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the User on success, None on any failure. The two failure reasons
    are logged distinctly but never shown to the caller.
    """
    user = store.get_by_email(email)
    if user is None:
        hasher.burn(password)
        logger.info("Login rejected: email not registered")
        return None
    if not hasher.verify(password, user.hashed_password):
        logger.info("Login rejected: incorrect password for user_id=%s", user.id)
        return None
    return user
