from rolltables.api.health import router as health_router
from rolltables.api.tables import router as tables_router

__all__ = [
    "health_router",
    "tables_router",
]
