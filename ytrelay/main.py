from typing import Optional
from fastapi import APIRouter, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from ytrelay.api import download, health, info, redirect, static
from ytrelay.config.settings import Config, config as default_config
from ytrelay.core.logging import setup_logging
from ytrelay.core.middleware import RequestIdMiddleware
from ytrelay.infra.rate_limit import FixedWindowRateLimiter
from ytrelay.infra.redis import init_redis, close_redis
from ytrelay.services.ytdlp import Downloader, YtDlpClient


def _base_app(config: Config) -> FastAPI:
    setup_logging(config.logging)

    app = FastAPI(
        title=config.api.title,
        version=config.api.version,
        docs_url="/docs" if config.api.debug else None,
        redoc_url=None
    )
    app.state.config = config

    app.add_middleware(RequestIdMiddleware)

    @app.on_event("startup")
    async def startup_event():
        await init_redis(config.redis)

    @app.on_event("shutdown")
    async def shutdown_event():
        await close_redis()

    return app


def create_app(config: Optional[Config] = None, downloader: Optional[Downloader] = None) -> FastAPI:
    """API server: /api/info, /api/download, /r, /health and the front-end"""
    config = config or default_config
    app = _base_app(config)

    app.state.downloader = downloader or YtDlpClient(config.ytdlp)
    app.state.rate_limiter = FixedWindowRateLimiter(config.rate_limit)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Only the API namespace is rate limited
    api = APIRouter(prefix="/api", dependencies=[Depends(app.state.rate_limiter)])
    api.include_router(info.router, tags=["Info"])
    api.include_router(download.router, tags=["Download"])

    app.include_router(api)
    app.include_router(health.router, tags=["Health"])
    app.include_router(redirect.router, tags=["Redirect"])
    # Catch-all last so it never shadows the routes above
    app.include_router(static.router)
    return app


def create_redirect_app(config: Optional[Config] = None) -> FastAPI:
    """Simple mode: redirect every request to the configured target"""
    config = config or default_config
    app = _base_app(config)
    redirect.install_catch_all(app)
    return app


def build_app(config: Optional[Config] = None) -> FastAPI:
    config = config or default_config
    if config.server.simple_mode:
        return create_redirect_app(config)
    return create_app(config)


app = build_app()
