from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.packages import router as packages_router

__all__ = ["health_router", "packages_router"]
