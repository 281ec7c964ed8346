"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in campus/models.py -- dataclasses own domain shape; stores and routes do the
work.

Layer rule: no imports from api/, web/, or campus/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_ADMIN = "admin"
ROLE_STUDENT = "estudiante"


@dataclass
class User:
    """A row of the usuarios table.

    hashed_password is the bcrypt digest; the plaintext is never stored.
    token is the copy of the token minted at registration (None for users
    created by an admin). Neither field ever leaves the API layer.
    """

    nombre: str
    apellido: str
    email: str
    cedula: str
    rol: str = ROLE_STUDENT
    id: int | None = None
    hashed_password: str | None = None
    token: str | None = None


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as proven by a verified bearer token.

    user_id is None for registration tokens, which only carry the email.
    Role is deliberately absent: it is read from the store when needed.
    """

    email: str
    user_id: int | None = None
