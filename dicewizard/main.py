import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.exc import SQLAlchemyError

from dicewizard.api.auth import router as auth_router
from dicewizard.api.campaigns import router as campaigns_router
from dicewizard.api.characters import router as characters_router
from dicewizard.api.content import router as content_router
from dicewizard.api.invites import router as invites_router
from dicewizard.api.notes import router as notes_router
from dicewizard.config import Settings
from dicewizard.database import Database
from dicewizard.errors import CampaignError
from dicewizard.game.characters import CharacterEngine
from dicewizard.metrics import CHARACTERS_TOTAL, HTTP_REQUESTS_TOTAL, HTTP_REQUEST_DURATION, route_path

logger = logging.getLogger(__name__)


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """Build the API around one Settings instance; nothing reads settings globally."""
    config = config or Settings()
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    db = Database(config.DATABASE_URL, echo=config.DATABASE_ECHO)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await db.init_db()
        async with db.session() as session:
            CHARACTERS_TOTAL.set(await CharacterEngine.count_characters(session))
        yield
        await db.dispose()

    app = FastAPI(title="Dice Wizard", lifespan=lifespan)
    app.state.settings = config
    app.state.db = db

    @app.exception_handler(CampaignError)
    async def campaign_error_handler(request: Request, exc: CampaignError):
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.kind)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message, "kind": exc.kind})

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("%s %s failed in storage", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "storage error", "kind": "Internal"})

    @app.middleware("http")
    async def record_request(request: Request, call_next):
        started = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            path = route_path(request)
            HTTP_REQUESTS_TOTAL.labels(request.method, path, str(status)).inc()
            HTTP_REQUEST_DURATION.labels(request.method, path).observe(time.perf_counter() - started)

    app.include_router(auth_router)
    app.include_router(characters_router)
    app.include_router(campaigns_router)
    app.include_router(invites_router)
    app.include_router(content_router)
    app.include_router(notes_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app
