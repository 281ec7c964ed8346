"""
web/routes.py -- Static single-page frontend fallback.

The compiled frontend (Flutter web build) lives in Settings.static_dir.
Any GET that no API route claimed lands here:

  /api/...                -> 404 JSON, never index.html
  existing file in bundle -> that file
  anything else           -> index.html (client-side routing)

Paths are resolved and must stay inside static_dir; "../" tricks fall back
to index.html instead of escaping the bundle.

Layer rule: web/ does not import from api/. asgi.py mounts this router after
the API routers so it only sees unclaimed paths.
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

router = APIRouter()


def _resolve_asset(root: Path, requested: str) -> Path | None:
    if not requested:
        return None
    candidate = (root / requested).resolve()
    if not candidate.is_relative_to(root) or not candidate.is_file():
        return None
    return candidate


@router.get("/{full_path:path}", include_in_schema=False)
async def spa_fallback(request: Request, full_path: str) -> FileResponse:
    if full_path == "api" or full_path.startswith("api/"):
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "Not found."})

    root = Path(request.app.state.settings.static_dir).resolve()
    asset = _resolve_asset(root, full_path)
    if asset is not None:
        return FileResponse(asset)

    index = root / "index.html"
    if not index.is_file():
        raise HTTPException(status_code=404, detail={"code": "not_found", "message": "Frontend bundle not found."})
    return FileResponse(index)
