"""
campus/models.py -- Domain dataclasses for the campus location hierarchy.

These are pure data containers with zero logic. Query building, filtering and
integrity handling live in campus/store.py.

Place (lugar) is the root of the hierarchy. Buildings belong to a place and a
category; blocks belong to a building and list their labs; evaluations point at
all four levels at once.

Fields named *_nombre / nombre_edificio are read-only: they are filled by the
enriched read views (joins) and are None on rows returned by writes.

id is None before the record is written to the database.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Place:
    nombre: str
    fecha_creacion: Optional[str] = None  # ISO 8601 date
    id: Optional[int] = None


@dataclass
class Category:
    nombre: str
    id: Optional[int] = None


@dataclass
class Building:
    nombre: str
    lugar_id: Optional[int] = None
    categoria_id: Optional[int] = None
    id: Optional[int] = None


@dataclass
class Block:
    """A block inside a building. laboratorios keeps insertion order."""

    nombre: str
    edificios_id: Optional[int] = None
    descripcion: Optional[str] = None
    latitud: Optional[float] = None
    longitud: Optional[float] = None
    laboratorios: list[str] = field(default_factory=list)
    id: Optional[int] = None
    nombre_edificio: Optional[str] = None
    categoria_id: Optional[int] = None
    categoria_nombre: Optional[str] = None


@dataclass
class Evaluation:
    """A scheduled evaluation located at place/category/building/block level.

    horarios is a free-form schedule descriptor (any JSON value).
    """

    nombre: str
    lugar_id: Optional[int] = None
    categoria_id: Optional[int] = None
    edificio_id: Optional[int] = None
    bloque_id: Optional[int] = None
    laboratorios: list[str] = field(default_factory=list)
    fecha_inicio: Optional[str] = None
    fecha_fin: Optional[str] = None
    horarios: Any = None
    id: Optional[int] = None
    lugar_nombre: Optional[str] = None
    categoria_nombre: Optional[str] = None
    edificio_nombre: Optional[str] = None
    bloque_nombre: Optional[str] = None


@dataclass
class WifiCredential:
    """Campus network credential. Stored as given -- it is shown to users."""

    nombre: str
    password: str
    id: Optional[int] = None
