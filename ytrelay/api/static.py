import os
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse
from ytrelay.i18n import i18n

ENTRY_POINT = "index.html"

router = APIRouter()

def resolve_static(static_dir: str, full_path: str) -> str:
    """File under static_dir for full_path, falling back to the entry point"""
    root = os.path.realpath(static_dir)
    if full_path:
        candidate = os.path.realpath(os.path.join(root, full_path))
        if candidate.startswith(root + os.sep) and os.path.isfile(candidate):
            return candidate
    entry = os.path.join(root, ENTRY_POINT)
    if os.path.isfile(entry):
        return entry
    raise HTTPException(status_code=404, detail=i18n.get("error.not_found"))

@router.get("/{full_path:path}", include_in_schema=False)
async def static_fallback(request: Request, full_path: str):
    """Front-end assets; unknown API paths stay 404"""
    if full_path == "api" or full_path.startswith("api/"):
        raise HTTPException(status_code=404, detail=i18n.get("error.not_found"))
    return FileResponse(resolve_static(request.app.state.config.server.static_dir, full_path))
