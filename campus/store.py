"""
campus/store.py -- SQLAlchemy-backed persistence for the campus resources.

Uses SQLAlchemy Core (not ORM) so the dataclasses in campus/models.py remain the
authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper, generalized. Every campus table is described
once by a Resource (table, mutable fields, filters, read view, model). CampusStore
implements list/get/create/update/delete a single time against that
description instead of once per table. _row_to_model is the mapper.

Joined read views (blocks, evaluations) use LEFT OUTER joins: a row whose
building/place/category/block reference dangles is still listed, with None in
the joined name columns. Filters on joined columns naturally exclude it.

Integrity:
  edificios.lugar_id and edificios.categoria_id are real foreign keys. Writing
  a dangling id raises ValidationError(code="invalid_reference"); deleting a
  place or category that buildings still point at raises ConflictError.
  Nothing cascades.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = CampusStore(engine=engine)
    place = store.create(PLACES, {"nombre": "Campus Norte", "fecha_creacion": "2024-01-01"})
    store.list(BUILDINGS, {"lugar_id": place.id})
    store.delete(PLACES, place.id)
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Column,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql import Select

from campus.models import Block, Building, Category, Evaluation, Place, WifiCredential
from core.config import get_settings
from core.db import create_db_engine, is_foreign_key_violation, is_not_null_violation, is_unique_violation
from core.errors import ConflictError, ValidationError

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_lugar = Table(
    "lugar",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(255), nullable=False),
    Column("fecha_creacion", String(32)),  # YYYY-MM-DD
)

_categoria = Table(
    "categoria",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(255), nullable=False),
)

_edificios = Table(
    "edificios",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(255), nullable=False),
    Column("lugar_id", Integer, ForeignKey("lugar.id"), nullable=False),
    Column("categoria_id", Integer, ForeignKey("categoria.id"), nullable=False),
)

_bloques = Table(
    "bloques",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(255), nullable=False),
    Column("descripcion", Text),
    Column("latitud", Float),
    Column("longitud", Float),
    Column("edificios_id", Integer, nullable=False),
    Column("laboratorios", JSON),  # ordered list of lab names
)

_evaluaciones = Table(
    "evaluaciones",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(255), nullable=False),
    Column("lugar_id", Integer),
    Column("categoria_id", Integer),
    Column("edificio_id", Integer),
    Column("bloque_id", Integer),
    Column("laboratorios", JSON),
    Column("fecha_inicio", String(32)),
    Column("fecha_fin", String(32)),
    Column("horarios", JSON),  # free-form schedule descriptor
)

_wifi = Table(
    "wifi",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("nombre", String(255), nullable=False),
    Column("password", String(255), nullable=False),
)


# ---------------------------------------------------------------------------
# Read views
# ---------------------------------------------------------------------------


def _blocks_view() -> Select:
    return select(
        *_bloques.c,
        _edificios.c.nombre.label("nombre_edificio"),
        _edificios.c.categoria_id.label("categoria_id"),
        _categoria.c.nombre.label("categoria_nombre"),
    ).select_from(
        _bloques.outerjoin(_edificios, _bloques.c.edificios_id == _edificios.c.id).outerjoin(
            _categoria, _edificios.c.categoria_id == _categoria.c.id
        )
    )


def _evaluations_view() -> Select:
    return select(
        *_evaluaciones.c,
        _lugar.c.nombre.label("lugar_nombre"),
        _categoria.c.nombre.label("categoria_nombre"),
        _edificios.c.nombre.label("edificio_nombre"),
        _bloques.c.nombre.label("bloque_nombre"),
    ).select_from(
        _evaluaciones.outerjoin(_lugar, _evaluaciones.c.lugar_id == _lugar.c.id)
        .outerjoin(_categoria, _evaluaciones.c.categoria_id == _categoria.c.id)
        .outerjoin(_edificios, _evaluaciones.c.edificio_id == _edificios.c.id)
        .outerjoin(_bloques, _evaluaciones.c.bloque_id == _bloques.c.id)
    )


# ---------------------------------------------------------------------------
# Resource descriptions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Resource:
    """Everything the generic CRUD code needs to know about one table.

    fields              -- mutable columns, all overwritten on update
    required            -- must be present and non-blank on create
    required_on_update  -- must be present and non-blank on update
    list_fields         -- JSON list columns; None is stored as []
    filters             -- list query parameter name -> column (ANDed equality)
    view                -- enriched SELECT for reads; defaults to the bare table
    """

    name: str
    label: str
    table: Table
    model: type
    fields: tuple[str, ...]
    required: tuple[str, ...] = ()
    required_on_update: tuple[str, ...] = ()
    list_fields: tuple[str, ...] = ()
    filters: Mapping[str, Column] = field(default_factory=dict)
    view: Optional[Callable[[], Select]] = None

    def select(self) -> Select:
        return self.view() if self.view is not None else select(self.table)


PLACES = Resource(
    name="lugar",
    label="Place",
    table=_lugar,
    model=Place,
    fields=("nombre", "fecha_creacion"),
    required=("nombre",),
    required_on_update=("nombre", "fecha_creacion"),
)

CATEGORIES = Resource(
    name="categorias",
    label="Category",
    table=_categoria,
    model=Category,
    fields=("nombre",),
    required=("nombre",),
    required_on_update=("nombre",),
)

BUILDINGS = Resource(
    name="edificios",
    label="Building",
    table=_edificios,
    model=Building,
    fields=("nombre", "lugar_id", "categoria_id"),
    required=("nombre", "lugar_id", "categoria_id"),
    required_on_update=("nombre", "lugar_id", "categoria_id"),
    filters={
        "id": _edificios.c.id,
        "categoria_id": _edificios.c.categoria_id,
        "lugar_id": _edificios.c.lugar_id,
    },
)

BLOCKS = Resource(
    name="bloques",
    label="Block",
    table=_bloques,
    model=Block,
    fields=("nombre", "descripcion", "latitud", "longitud", "edificios_id", "laboratorios"),
    required=("nombre", "edificios_id"),
    required_on_update=("nombre", "edificios_id"),
    list_fields=("laboratorios",),
    filters={
        "edificio_id": _bloques.c.edificios_id,
        "lugar_id": _edificios.c.lugar_id,
        "categoria_id": _edificios.c.categoria_id,
    },
    view=_blocks_view,
)

EVALUATIONS = Resource(
    name="evaluaciones",
    label="Evaluation",
    table=_evaluaciones,
    model=Evaluation,
    fields=(
        "nombre",
        "lugar_id",
        "categoria_id",
        "edificio_id",
        "bloque_id",
        "laboratorios",
        "fecha_inicio",
        "fecha_fin",
        "horarios",
    ),
    required=("nombre",),
    required_on_update=("nombre",),
    list_fields=("laboratorios",),
    filters={
        "lugar_id": _evaluaciones.c.lugar_id,
        "categoria_id": _evaluaciones.c.categoria_id,
        "edificio_id": _evaluaciones.c.edificio_id,
        "bloque_id": _evaluaciones.c.bloque_id,
    },
    view=_evaluations_view,
)

WIFI = Resource(
    name="wifi",
    label="Wi-Fi credential",
    table=_wifi,
    model=WifiCredential,
    fields=("nombre", "password"),
    required=("nombre", "password"),
    required_on_update=("nombre", "password"),
)

RESOURCES: tuple[Resource, ...] = (PLACES, CATEGORIES, BUILDINGS, BLOCKS, EVALUATIONS, WIFI)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CampusStore:
    def __init__(self, db_url: str | None = None, engine: Engine | None = None) -> None:
        self._owns_engine = engine is None
        self.engine: Engine = engine if engine is not None else create_db_engine(db_url or get_settings().database_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Generic CRUD
    # ------------------------------------------------------------------

    def list(self, resource: Resource, filters: Mapping[str, Any] | None = None) -> list:
        """Return rows matching every given filter, ordered by id.

        Filters whose value is None are left out of the WHERE clause entirely.
        Unknown filter names raise KeyError -- callers pass declared names only.
        """
        stmt = resource.select()
        for name, value in (filters or {}).items():
            if value is None:
                continue
            stmt = stmt.where(resource.filters[name] == value)
        stmt = stmt.order_by(resource.table.c.id)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_model(resource, r) for r in rows]

    def get(self, resource: Resource, row_id: int):
        """Fetch one row through the resource's read view. Returns None if not found."""
        stmt = resource.select().where(resource.table.c.id == row_id)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).fetchone()
        return _row_to_model(resource, row) if row is not None else None

    def first(self, resource: Resource):
        """Return the lowest-id row, or None when the table is empty."""
        stmt = resource.select().order_by(resource.table.c.id).limit(1)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).fetchone()
        return _row_to_model(resource, row) if row is not None else None

    def create(self, resource: Resource, values: Mapping[str, Any]):
        """Insert a row built from the resource's mutable fields and return it."""
        stmt = resource.table.insert().values(**_writable(resource, values)).returning(*resource.table.c)
        row = self._write(resource, stmt)
        return _row_to_model(resource, row)

    def update(self, resource: Resource, row_id: int, values: Mapping[str, Any]):
        """Overwrite every mutable field of a row. Returns None if row_id does not exist.

        Fields missing from `values` are written as None (lists as []); there
        are no partial updates.
        """
        stmt = (
            resource.table.update()
            .where(resource.table.c.id == row_id)
            .values(**_writable(resource, values))
            .returning(*resource.table.c)
        )
        row = self._write(resource, stmt)
        return _row_to_model(resource, row) if row is not None else None

    def delete(self, resource: Resource, row_id: int) -> bool:
        """Hard-delete a row. Returns True if deleted, False if not found."""
        stmt = resource.table.delete().where(resource.table.c.id == row_id)
        with self.engine.connect() as conn:
            try:
                result = conn.execute(stmt)
                conn.commit()
            except IntegrityError as exc:
                conn.rollback()
                if is_foreign_key_violation(exc):
                    raise ConflictError(
                        f"{resource.label} {row_id} is still referenced by other records.",
                        code="conflict",
                    ) from exc
                raise
        return result.rowcount > 0

    def count(self, resource: Resource) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(resource.table)).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Resource-specific reads
    # ------------------------------------------------------------------

    def categories_with_buildings(self, lugar_id: int | None = None) -> list[Category]:
        """Distinct categories that have at least one building, optionally in one place."""
        stmt = (
            select(_categoria)
            .distinct()
            .select_from(_categoria.join(_edificios, _categoria.c.id == _edificios.c.categoria_id))
        )
        if lugar_id is not None:
            stmt = stmt.where(_edificios.c.lugar_id == lugar_id)
        stmt = stmt.order_by(_categoria.c.id)
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [_row_to_model(CATEGORIES, r) for r in rows]

    def labs_for_block(self, bloque_id: int) -> list[str]:
        """Lab names of a block in stored order; [] if the block does not exist."""
        with self.engine.connect() as conn:
            labs = conn.execute(select(_bloques.c.laboratorios).where(_bloques.c.id == bloque_id)).scalar()
        return list(labs or [])

    def close(self) -> None:
        if self._owns_engine:
            self.engine.dispose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _write(self, resource: Resource, stmt):
        with self.engine.connect() as conn:
            try:
                row = conn.execute(stmt).fetchone()
                conn.commit()
            except IntegrityError as exc:
                conn.rollback()
                if is_foreign_key_violation(exc):
                    raise ValidationError(
                        f"{resource.label} references a record that does not exist.",
                        code="invalid_reference",
                    ) from exc
                if is_unique_violation(exc):
                    raise ConflictError(f"{resource.label} already exists.") from exc
                if is_not_null_violation(exc):
                    raise ValidationError(f"{resource.label} is missing a required field.") from exc
                raise
        return row


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _writable(resource: Resource, values: Mapping[str, Any]) -> dict[str, Any]:
    """Project values onto the resource's mutable fields, filling absent ones."""
    out: dict[str, Any] = {}
    for name in resource.fields:
        value = values.get(name)
        if name in resource.list_fields and value is None:
            value = []
        out[name] = value
    return out


def _row_to_model(resource: Resource, row):
    mapping = row._mapping
    names = {f.name for f in fields(resource.model)}
    kwargs = {k: mapping[k] for k in mapping.keys() if k in names}
    for name in resource.list_fields:
        if kwargs.get(name) is None:
            kwargs[name] = []
    return resource.model(**kwargs)
