from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fogcontroller.core.config import Settings, get_settings
from fogcontroller.core.db.pool import close_pool, init_pool
from fogcontroller.core.errors import FogControllerError
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api import router as api_router
from fogcontroller.server.middleware import catch_exceptions_middleware, fog_controller_error_handler

logger = setup_logger(__name__, include_location=True)


def create_app(settings: Optional[Settings] = None, use_pool: bool = True) -> FastAPI:
    """
    Build the API application.

    `settings` is passed explicitly by the server command; tests pass
    `use_pool=False` and patch the services instead of opening a database pool.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if use_pool:
            await init_pool(settings.conn_string)
        try:
            yield
        finally:
            if use_pool:
                await close_pool()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(FogControllerError, fog_controller_error_handler)
    app.middleware('http')(catch_exceptions_middleware)

    @app.get("/", include_in_schema=False)
    async def main_page():
        return {"message": f"{settings.app_name} {settings.app_version} is running. The API lives under /api/v2."}

    app.include_router(api_router)
    return app
