"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backbar.api.router import api_router
from backbar.core.config import settings
from backbar.core.exceptions import TransportError
from backbar.core.seed import seed_demo_items
from backbar.services.session import SessionRegistry
from backbar.services.store import BaseItemStore, build_item_store

logger = logging.getLogger(__name__)


def create_app(store: BaseItemStore | None = None) -> FastAPI:
    """Build the application around an item store (defaults to ``STORE_BACKEND``)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logging.basicConfig(
            level=settings.LOG_LEVEL,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        item_store = store or build_item_store(settings)
        await item_store.open()
        try:
            await seed_demo_items(item_store)
        except TransportError as e:
            logger.warning("Seed failed (store may not be ready): %s", e)
        app.state.sessions = SessionRegistry(item_store)
        logger.info("%s started with %s store", settings.APP_NAME, item_store.backend)
        yield
        # Shutdown
        await app.state.sessions.close_all()
        await item_store.close()

    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        debug=settings.DEBUG,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


app = create_app()
