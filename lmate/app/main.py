import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lmate.app.core.config import settings
from lmate.app.routers import devices
from lmate.app.services.session import registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Stop every device session's pollers on shutdown."""
    try:
        yield
    finally:
        await registry.stop_all()


def create_app() -> FastAPI:
    logging.getLogger("lmate").setLevel(settings.log_level.upper())
    application = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

    allow_origins = settings.cors_allow_origins or ["*"]
    application.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(devices.router)

    @application.get("/healthz", tags=["meta"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @application.get("/version", tags=["meta"])
    async def version() -> dict[str, str]:
        return {"version": settings.version}

    return application


app = create_app()
