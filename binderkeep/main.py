from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from binderkeep.api import (
    binder_router,
    cards_router,
    catalog_router,
    collections_router,
    health_router,
    preferences_router,
)
from binderkeep.api.deps import build_services
from binderkeep.clients.base import create_client
from binderkeep.config import settings
from binderkeep.db.database import documents_engine, engine
from binderkeep.storage.documents import SqlDocumentStore
from binderkeep.storage.key_value import SqlKeyValueStore


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize stores and services on startup, release them on shutdown."""
    store = SqlKeyValueStore(engine)
    documents = SqlDocumentStore(documents_engine)
    await store.initialize()
    await documents.initialize()

    async with create_client() as client:
        services = build_services(store, documents, client=client, documents_dir=settings.documents_dir)
        app.state.services = services
        yield
        await services.refresher.wait_for_background()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("binderkeep"),
    lifespan=lifespan,
)

app.include_router(binder_router)
app.include_router(cards_router)
app.include_router(catalog_router)
app.include_router(collections_router)
app.include_router(health_router)
app.include_router(preferences_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
