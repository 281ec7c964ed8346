"""
auth/store.py -- SQLAlchemy Core persistence layer for the usuarios table.

Pattern: Repository + Data Mapper (same as campus/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  email and cedula are UNIQUE at the database level. A collision surfaces as
  ConflictError, whichever of the two columns caused it.

Every write is one statement (INSERT/UPDATE ... RETURNING), so there is no
read-after-write window between the change and the row handed back.

Layer rule: no imports from api/, web/, or campus/.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import ROLE_STUDENT, User
from core.config import get_settings
from core.db import create_db_engine, is_unique_violation
from core.errors import ConflictError

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_usuarios = Table(
    "usuarios",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(255), nullable=False),
    Column("apellido", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("cedula", String(50), nullable=False, unique=True),
    Column("password", Text, nullable=False),  # bcrypt digest
    Column("rol", String(30), nullable=False, server_default=ROLE_STUDENT),
    Column("token", Text),  # copy of the registration token
)

_DUPLICATE_MESSAGE = "Email or national id already registered."

# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore(engine=engine)
        user = store.create_user(User(nombre="Ana", apellido="Ruiz", email="ana@x.com",
                                      cedula="123", hashed_password=hasher.hash("secret1")))
        store.get_by_email("ana@x.com")
    """

    def __init__(self, db_url: str | None = None, engine: Engine | None = None) -> None:
        self._owns_engine = engine is None
        self.engine: Engine = engine if engine is not None else create_db_engine(db_url or get_settings().database_url)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_usuarios.select().where(_usuarios.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email match. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_usuarios.select().where(_usuarios.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_role(self, user_id: int | None = None, email: str | None = None) -> str | None:
        """Return the stored role for a user id (or email when no id is known).

        The admin gate calls this on every request instead of trusting a
        claim, so it selects the one column it needs.
        """
        if user_id is not None:
            where = _usuarios.c.id == user_id
        elif email is not None:
            where = _usuarios.c.email == email
        else:
            return None
        with self.engine.connect() as conn:
            return conn.execute(select(_usuarios.c.rol).where(where)).scalar()

    def list_users(self) -> list[User]:
        """Return all users ordered by id."""
        with self.engine.connect() as conn:
            rows = conn.execute(_usuarios.select().order_by(_usuarios.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    def count_by_email(self, email: str) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_usuarios).where(_usuarios.c.email == email)).scalar()
        return result or 0

    def count(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_usuarios)).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> User:
        """Insert a new user and return the stored row.

        Raises ConflictError if the email or cedula already exists.
        """
        stmt = (
            _usuarios.insert()
            .values(
                nombre=user.nombre,
                apellido=user.apellido,
                email=user.email,
                cedula=user.cedula,
                password=user.hashed_password,
                rol=user.rol or ROLE_STUDENT,
                token=user.token,
            )
            .returning(*_usuarios.c)
        )
        with self.engine.connect() as conn:
            try:
                row = conn.execute(stmt).fetchone()
                conn.commit()
            except IntegrityError as exc:
                conn.rollback()
                if is_unique_violation(exc):
                    raise ConflictError(_DUPLICATE_MESSAGE) from exc
                raise
        return _row_to_user(row)

    def update_user(self, user_id: int, **fields) -> User | None:
        """Overwrite the given columns on an existing user.

        Accepted fields: nombre, apellido, email, cedula, rol, hashed_password.
        Returns the updated User, or None if user_id was not found.
        Raises ConflictError if the new email or cedula belongs to another user.
        """
        if "hashed_password" in fields:
            fields["password"] = fields.pop("hashed_password")
        stmt = _usuarios.update().where(_usuarios.c.id == user_id).values(**fields).returning(*_usuarios.c)
        with self.engine.connect() as conn:
            try:
                row = conn.execute(stmt).fetchone()
                conn.commit()
            except IntegrityError as exc:
                conn.rollback()
                if is_unique_violation(exc):
                    raise ConflictError(_DUPLICATE_MESSAGE) from exc
                raise
        return _row_to_user(row) if row is not None else None

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete a user record. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_usuarios.delete().where(_usuarios.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        if self._owns_engine:
            self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        nombre=row.nombre,
        apellido=row.apellido,
        email=row.email,
        cedula=row.cedula,
        rol=row.rol,
        hashed_password=row.password,
        token=row.token,
    )
