"""
API request and response models for the campusnav REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
campus/models.py, which own the internal domain representation. Route handlers
map between the two.

Request models declare every field Optional. Presence of required fields is
checked by the handlers (core.errors.require_fields) so a missing field yields
a 400 that lists every missing name at once, the same way for every resource.
Pydantic still coerces types ("3" -> 3 for ids, numbers for coordinates).
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    admin = "admin"
    estudiante = "estudiante"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None
    fields: Optional[list[str]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    id: Optional[int] = None


# ---------------------------------------------------------------------------
# Auth -- requests
#
# Profile fields are stripped; passwords are taken byte-for-byte as typed.
# ---------------------------------------------------------------------------


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class RegisterRequest(BaseModel):
    """Body of POST /register and POST /api/usuarios."""

    nombre: Optional[str] = Field(default=None, max_length=255)
    apellido: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    cedula: Optional[str] = Field(default=None, max_length=50)
    password: Optional[str] = Field(default=None, max_length=72)
    rol: Optional[RoleEnum] = None

    @field_validator("nombre", "apellido", "email", "cedula", mode="before")
    @classmethod
    def strip_profile(cls, value: Any) -> Any:
        return _strip(value)


class LoginRequest(BaseModel):
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=72)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value: Any) -> Any:
        return _strip(value)


class UserUpdate(BaseModel):
    """Body of PUT /api/usuarios/{id}. password is only rehashed when non-blank."""

    nombre: Optional[str] = Field(default=None, max_length=255)
    apellido: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    cedula: Optional[str] = Field(default=None, max_length=50)
    rol: Optional[RoleEnum] = None
    password: Optional[str] = Field(default=None, max_length=72)

    @field_validator("nombre", "apellido", "email", "cedula", mode="before")
    @classmethod
    def strip_profile(cls, value: Any) -> Any:
        return _strip(value)


# ---------------------------------------------------------------------------
# Auth -- responses
# ---------------------------------------------------------------------------


class UserPublic(BaseModel):
    """Public projection of a user. Never includes password, cedula, or token."""

    model_config = ConfigDict(frozen=True)

    id: int
    nombre: str
    email: str
    rol: str


class UserResponse(BaseModel):
    """User row as shown to admins."""

    model_config = ConfigDict(frozen=True)

    id: int
    nombre: str
    apellido: str
    email: str
    rol: str


class AuthResponse(BaseModel):
    """Response for POST /register and POST /api/login."""

    model_config = ConfigDict(frozen=True)

    message: str
    token: str
    usuario: UserPublic


class VerifyTokenResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool = True
    user: UserPublic


class ProfileResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    nombre: str
    apellido: str
    email: str
    rol: str


# ---------------------------------------------------------------------------
# Campus -- requests
# ---------------------------------------------------------------------------


class PlaceIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    nombre: Optional[str] = Field(default=None, max_length=255)
    fecha_creacion: Optional[str] = Field(default=None, max_length=32)


class CategoryIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    nombre: Optional[str] = Field(default=None, max_length=255)


class BuildingIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    nombre: Optional[str] = Field(default=None, max_length=255)
    lugar_id: Optional[int] = None
    categoria_id: Optional[int] = None


class BlockIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    nombre: Optional[str] = Field(default=None, max_length=255)
    descripcion: Optional[str] = None
    latitud: Optional[float] = None
    longitud: Optional[float] = None
    edificios_id: Optional[int] = None
    laboratorios: Optional[list[str]] = None


class EvaluationIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    nombre: Optional[str] = Field(default=None, max_length=255)
    lugar_id: Optional[int] = None
    categoria_id: Optional[int] = None
    edificio_id: Optional[int] = None
    bloque_id: Optional[int] = None
    laboratorios: Optional[list[str]] = None
    fecha_inicio: Optional[str] = Field(default=None, max_length=32)
    fecha_fin: Optional[str] = Field(default=None, max_length=32)
    horarios: Any = None


class WifiIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    nombre: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# Campus -- responses
# ---------------------------------------------------------------------------


class PlaceOut(BaseModel):
    id: int
    nombre: str
    fecha_creacion: Optional[str] = None


class CategoryOut(BaseModel):
    id: int
    nombre: str


class BuildingOut(BaseModel):
    id: int
    nombre: str
    lugar_id: Optional[int] = None
    categoria_id: Optional[int] = None


class BlockOut(BaseModel):
    id: int
    nombre: str
    descripcion: Optional[str] = None
    latitud: Optional[float] = None
    longitud: Optional[float] = None
    edificios_id: Optional[int] = None
    laboratorios: list[str] = Field(default_factory=list)
    nombre_edificio: Optional[str] = None
    categoria_id: Optional[int] = None
    categoria_nombre: Optional[str] = None


class EvaluationOut(BaseModel):
    id: int
    nombre: str
    lugar_id: Optional[int] = None
    lugar_nombre: Optional[str] = None
    categoria_id: Optional[int] = None
    categoria_nombre: Optional[str] = None
    edificio_id: Optional[int] = None
    edificio_nombre: Optional[str] = None
    bloque_id: Optional[int] = None
    bloque_nombre: Optional[str] = None
    laboratorios: list[str] = Field(default_factory=list)
    fecha_inicio: Optional[str] = None
    fecha_fin: Optional[str] = None
    horarios: Any = None


class WifiOut(BaseModel):
    id: int
    nombre: str
    password: str
