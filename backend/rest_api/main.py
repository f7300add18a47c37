"""
REST API main application.
Entry point for the FastAPI server: resource API under /api and the
realtime channel at /ws, sharing one process and one fanout hub.
"""

from fastapi import FastAPI

from rest_api.core.cors import configure_cors
from rest_api.core.errors import register_exception_handlers
from rest_api.core.lifespan import lifespan
from rest_api.core.middlewares import register_middlewares
from rest_api.routers.auth import router as auth_router
from rest_api.routers.catalog import router as catalog_router
from rest_api.routers.orders import router as orders_router
from rest_api.routers.public import health_router
from rest_api.routers.reports import router as reports_router
from rest_api.routers.tables import router as tables_router
from rest_api.routers.tenants import router as tenants_router
from shared.config.settings import settings
from shared.security.rate_limit import limiter
from ws_gateway.routes import router as realtime_router


def create_app() -> FastAPI:
    """Build the application with middlewares, error handlers and routers."""
    app = FastAPI(
        title="Restaurant POS API",
        description="Multi-tenant restaurant point of sale with realtime floor updates",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Rate limiting
    app.state.limiter = limiter

    register_exception_handlers(app)
    register_middlewares(app)
    # CORS last so it wraps every other middleware
    configure_cors(app)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(tenants_router)
    app.include_router(tables_router)
    app.include_router(catalog_router)
    app.include_router(orders_router)
    app.include_router(reports_router)
    app.include_router(realtime_router)

    return app


app = create_app()


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rest_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=settings.debug,
    )
