"""
api/crud.py -- One router factory for every campus resource.

build_crud_router(resource, body_model, out_model) registers the same five
routes for any Resource described in campus/store.py:

  GET    /<name>             list, narrowed by the resource's declared filters
  GET    /<name>/{row_id}    one row (enriched view)            404 if absent
  POST   /<name>             create                             201
  PUT    /<name>/{row_id}    overwrite every mutable field      404 if absent
  DELETE /<name>/{row_id}    hard delete                        404 if absent

Contract shared by all resources:
  - Required fields are checked before touching the store; a 400 lists every
    missing name (values that are None or blank strings).
  - List filters are read from the query string. A filter that is absent or
    empty is dropped from the WHERE clause; present filters are ANDed.
  - Write routes carry require_admin_for_writes, so the access policy in
    Settings decides whether they need an admin token.

Note: no `from __future__ import annotations` here. The handler signatures use
the body_model passed to the factory as a real annotation object; FastAPI
cannot resolve a string annotation that names a closure variable.
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from api.models import MessageResponse
from auth.dependencies import require_admin_for_writes
from campus.store import CampusStore, Resource
from core.errors import NotFoundError, ValidationError, require_fields

logger = logging.getLogger("campusnav.api")


def _campus(request: Request) -> CampusStore:
    return request.app.state.campus


def parse_filters(request: Request, resource: Resource) -> dict[str, int]:
    """Read the resource's declared filters from the query string as integers.

    Undeclared query parameters are ignored. Empty values count as absent.
    """
    filters: dict[str, int] = {}
    for name in resource.filters:
        raw = request.query_params.get(name)
        if raw is None or not raw.strip():
            continue
        try:
            filters[name] = int(raw)
        except ValueError as exc:
            raise ValidationError(f"Query parameter '{name}' must be an integer.", fields=[name]) from exc
    return filters


def build_crud_router(
    resource: Resource,
    body_model: type[BaseModel],
    out_model: type[BaseModel],
    *,
    include_list: bool = True,
) -> APIRouter:
    """Return an APIRouter with the standard CRUD routes for `resource`.

    include_list=False leaves GET /<name> unregistered so the caller can
    provide its own collection read (the Wi-Fi single-record read).
    """
    router = APIRouter()
    path = f"/{resource.name}"
    item_path = f"{path}/{{row_id}}"
    not_found = f"{resource.label} not found."

    if include_list:

        @router.get(path, response_model=list[out_model], name=f"list_{resource.name}")
        def list_rows(request: Request) -> list[dict]:
            filters = parse_filters(request, resource)
            return [asdict(row) for row in _campus(request).list(resource, filters)]

    @router.get(item_path, response_model=out_model, name=f"get_{resource.name}")
    def get_row(request: Request, row_id: int) -> dict:
        row = _campus(request).get(resource, row_id)
        if row is None:
            raise NotFoundError(not_found)
        return asdict(row)

    @router.post(
        path,
        response_model=out_model,
        status_code=201,
        dependencies=[Depends(require_admin_for_writes)],
        name=f"create_{resource.name}",
    )
    def create_row(request: Request, body: body_model) -> dict:
        values = body.model_dump()
        require_fields(values, resource.required)
        created = _campus(request).create(resource, values)
        logger.info("Created %s id=%s", resource.name, created.id)
        return asdict(created)

    @router.put(
        item_path,
        response_model=out_model,
        dependencies=[Depends(require_admin_for_writes)],
        name=f"update_{resource.name}",
    )
    def update_row(request: Request, row_id: int, body: body_model) -> dict:
        values = body.model_dump()
        require_fields(values, resource.required_on_update)
        updated = _campus(request).update(resource, row_id, values)
        if updated is None:
            raise NotFoundError(not_found)
        logger.info("Updated %s id=%s", resource.name, row_id)
        return asdict(updated)

    @router.delete(
        item_path,
        response_model=MessageResponse,
        dependencies=[Depends(require_admin_for_writes)],
        name=f"delete_{resource.name}",
    )
    def delete_row(request: Request, row_id: int) -> MessageResponse:
        if not _campus(request).delete(resource, row_id):
            raise NotFoundError(not_found)
        logger.info("Deleted %s id=%s", resource.name, row_id)
        return MessageResponse(message=f"{resource.label} deleted.", id=row_id)

    return router
