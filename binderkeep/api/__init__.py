from binderkeep.api.binder import router as binder_router
from binderkeep.api.cards import router as cards_router
from binderkeep.api.catalog import router as catalog_router
from binderkeep.api.collections import router as collections_router
from binderkeep.api.health import router as health_router
from binderkeep.api.preferences import router as preferences_router

__all__ = [
    "binder_router",
    "cards_router",
    "catalog_router",
    "collections_router",
    "health_router",
    "preferences_router",
]
