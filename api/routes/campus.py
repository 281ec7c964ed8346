"""
api/routes/campus.py -- Campus resource routes.

Every resource gets the standard CRUD routes from api.crud.build_crud_router.
This module only adds the reads that do not fit that shape:

  GET /api/categorias/lugar?lugar_id=   -- categories with buildings (in a place)
  GET /api/laboratorios?bloque_id=      -- labs of one block, [] if unknown
  GET /api/wifi                         -- the first Wi-Fi credential only

Registration order matters: /categorias/lugar must be registered before the
/categorias/{row_id} routes or "lugar" would be captured as an id.

Reads are public. Writes are gated by require_admin_for_writes inside the
factory.
"""

from typing import Optional

from fastapi import APIRouter, Request

from api.crud import build_crud_router
from api.models import (
    BlockIn,
    BlockOut,
    BuildingIn,
    BuildingOut,
    CategoryIn,
    CategoryOut,
    EvaluationIn,
    EvaluationOut,
    PlaceIn,
    PlaceOut,
    WifiIn,
    WifiOut,
)
from campus.store import BLOCKS, BUILDINGS, CATEGORIES, EVALUATIONS, PLACES, WIFI, CampusStore
from core.errors import NotFoundError

router = APIRouter()


@router.get("/categorias/lugar", response_model=list[CategoryOut])
def categories_by_place(request: Request, lugar_id: Optional[int] = None) -> list[dict]:
    """Distinct categories that have at least one building; narrowed to a place when given."""
    campus: CampusStore = request.app.state.campus
    return [{"id": c.id, "nombre": c.nombre} for c in campus.categories_with_buildings(lugar_id)]


@router.get("/laboratorios", response_model=list[str])
def labs_by_block(request: Request, bloque_id: Optional[int] = None) -> list[str]:
    """Lab names of a block in stored order. Unknown or missing block -> []."""
    if bloque_id is None:
        return []
    campus: CampusStore = request.app.state.campus
    return campus.labs_for_block(bloque_id)


@router.get("/wifi", response_model=WifiOut)
def first_wifi(request: Request) -> dict:
    """Return the first stored Wi-Fi credential. One record is kept by convention."""
    campus: CampusStore = request.app.state.campus
    wifi = campus.first(WIFI)
    if wifi is None:
        raise NotFoundError("No Wi-Fi credentials stored.")
    return {"id": wifi.id, "nombre": wifi.nombre, "password": wifi.password}


router.include_router(build_crud_router(PLACES, PlaceIn, PlaceOut))
router.include_router(build_crud_router(CATEGORIES, CategoryIn, CategoryOut))
router.include_router(build_crud_router(BUILDINGS, BuildingIn, BuildingOut))
router.include_router(build_crud_router(BLOCKS, BlockIn, BlockOut))
router.include_router(build_crud_router(EVALUATIONS, EvaluationIn, EvaluationOut))
router.include_router(build_crud_router(WIFI, WifiIn, WifiOut, include_list=False))
