"""API layer module.

Contains FastAPI routers and request/response schemas.
"""

from apparel_catalog.api.designs import router as designs_router
from apparel_catalog.api.health import router as health_router
from apparel_catalog.api.references import router as references_router

__all__ = [
    "designs_router",
    "health_router",
    "references_router",
]
