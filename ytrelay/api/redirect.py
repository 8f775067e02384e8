from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import RedirectResponse
from ytrelay.core.logging import log_info
from ytrelay.i18n import i18n

REDIRECT_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

router = APIRouter()

def redirect_to_target(request: Request) -> RedirectResponse:
    target = request.app.state.config.server.redirect_target
    path = request.url.path + (f"?{request.url.query}" if request.url.query else "")
    log_info(request, i18n.get("log.redirecting", path=path, target=target))
    return RedirectResponse(target, status_code=302)

@router.get("/r")
async def redirect(request: Request):
    """Redirect to the configured target, ignoring the query string"""
    return redirect_to_target(request)

def install_catch_all(app: FastAPI) -> None:
    """Simple mode: every method on every path redirects"""

    @app.api_route("/{full_path:path}", methods=REDIRECT_METHODS, include_in_schema=False)
    async def redirect_everything(request: Request, full_path: str):
        return redirect_to_target(request)
