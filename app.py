from __future__ import annotations

import contextlib
import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from persistence.database import DatabaseManager

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    database: DatabaseManager = app.state.database

    # A failed ping is logged inside initialize(); the app still starts.
    await database.initialize()
    try:
        yield
    finally:
        await database.close()
        app.state.people_repository = None


def create_app(database: DatabaseManager | None = None) -> FastAPI:
    load_dotenv()

    from endpoints.people_endpoints import router as people_router
    from settings import get_settings

    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(lifespan=lifespan)
    app.state.database = database or DatabaseManager(settings)
    app.state.people_repository = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    async def healthz():
        return {"ok": True, "mongodb": app.state.database.connected}

    app.include_router(people_router)

    return app


app = create_app()
