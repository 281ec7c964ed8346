"""
api/routes/users.py -- User administration endpoints (admin only).

Routes:
  GET    /api/usuarios          -- list users
  GET    /api/usuarios/{id}     -- one user
  POST   /api/usuarios          -- create user (any role), no token issued
  PUT    /api/usuarios/{id}     -- overwrite profile fields; password optional
  DELETE /api/usuarios/{id}     -- hard delete

Every route carries require_admin at router level, so individual handlers
don't repeat Depends(require_admin). Responses use UserResponse, which never
contains the password hash, cedula, or stored token.

A deleted user's unexpired token stops working immediately: verify-token and
profile re-fetch the row, and the admin gate re-reads the role.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from api.models import MessageResponse, RegisterRequest, UserResponse, UserUpdate
from api.routes.auth import create_account
from auth.dependencies import require_admin
from auth.models import ROLE_STUDENT, User
from auth.store import UserStore
from auth.tokens import PasswordHasher
from core.errors import NotFoundError, require_fields

logger = logging.getLogger("campusnav.api")

router = APIRouter(dependencies=[Depends(require_admin)])

_UPDATE_FIELDS = ("nombre", "apellido", "email", "cedula")


def _to_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, nombre=user.nombre, apellido=user.apellido, email=user.email, rol=user.rol)


@router.get("/usuarios", response_model=list[UserResponse])
def list_users(request: Request) -> list[UserResponse]:
    user_store: UserStore = request.app.state.user_store
    return [_to_response(u) for u in user_store.list_users()]


@router.get("/usuarios/{user_id}", response_model=UserResponse)
def get_user(request: Request, user_id: int) -> UserResponse:
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found.")
    return _to_response(user)


@router.post("/usuarios", response_model=UserResponse, status_code=201)
def create_user(request: Request, body: RegisterRequest) -> UserResponse:
    """Create an account on someone's behalf. Same validation as /register."""
    user, _token = create_account(request, body, issue_token=False)
    logger.info("Admin created user_id=%s role=%s", user.id, user.rol)
    return _to_response(user)


@router.put("/usuarios/{user_id}", response_model=UserResponse)
def update_user(request: Request, user_id: int, body: UserUpdate) -> UserResponse:
    """Overwrite nombre, apellido, email, cedula and rol.

    The password is rehashed only when a non-blank one is sent; otherwise the
    stored hash is kept.
    """
    require_fields(body.model_dump(), _UPDATE_FIELDS)
    user_store: UserStore = request.app.state.user_store
    fields: dict = {
        "nombre": body.nombre,
        "apellido": body.apellido,
        "email": body.email,
        "cedula": body.cedula,
        "rol": body.rol.value if body.rol else ROLE_STUDENT,
    }
    if body.password and body.password.strip():
        hasher: PasswordHasher = request.app.state.hasher
        fields["hashed_password"] = hasher.hash(body.password)

    updated = user_store.update_user(user_id, **fields)
    if updated is None:
        raise NotFoundError("User not found.")
    logger.info("Admin updated user_id=%s", user_id)
    return _to_response(updated)


@router.delete("/usuarios/{user_id}", response_model=MessageResponse)
def delete_user(request: Request, user_id: int) -> MessageResponse:
    user_store: UserStore = request.app.state.user_store
    if not user_store.delete_user(user_id):
        raise NotFoundError("User not found.")
    logger.info("Admin deleted user_id=%s", user_id)
    return MessageResponse(message="User deleted.", id=user_id)
