from typing import Dict, Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRouter

from . import __version__
from .config import Settings, get_settings
from .db import Database
from .errors import register_exception_handlers
from .logging_config import configure_logging
from .routers import (
    analytics_router,
    auth_router,
    categories_router,
    expenses_router,
    families_router,
    future_expenses_router,
    income_router,
    users_router,
)
from .stores.categories import CategoryStore

logger = structlog.get_logger(__name__)

openapi_tags = [
    {"name": "auth", "description": "Registration, login and the current user"},
    {"name": "families", "description": "Families and their members"},
    {"name": "categories", "description": "Default and family expense categories"},
    {"name": "expenses", "description": "Family expenses"},
    {"name": "income", "description": "Monthly family income"},
    {"name": "future-expenses", "description": "Recurring monthly commitments (EMIs)"},
    {"name": "analytics", "description": "Totals, breakdowns and trends"},
    {"name": "users", "description": "Profile, passwords and family user lists"},
    {"name": "health", "description": "Liveness"},
]


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API: settings, logging, database, middleware, error envelope and routes."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, json=settings.log_json)

    app = FastAPI(
        title="Family Ledger API",
        description="REST API for shared family expenses, income, monthly commitments and analytics.",
        version=__version__,
        openapi_tags=openapi_tags,
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.db = Database.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    api_router = APIRouter(prefix="/api")

    # PUBLIC_INTERFACE
    @api_router.get("/health", tags=["health"], summary="Health check")
    def health_check() -> Dict[str, str]:
        """Return health message."""
        return {"status": "ok"}

    # Mount routers under /api
    api_router.include_router(auth_router)
    api_router.include_router(families_router)
    api_router.include_router(categories_router)
    api_router.include_router(expenses_router)
    api_router.include_router(income_router)
    api_router.include_router(future_expenses_router)
    api_router.include_router(analytics_router)
    api_router.include_router(users_router)
    app.include_router(api_router)

    # Startup event: create tables and make sure the default categories exist.
    @app.on_event("startup")
    def on_startup() -> None:
        database: Database = app.state.db
        database.create_all()
        if settings.seed_default_categories:
            with database.session() as session:
                created = CategoryStore(session).ensure_defaults()
            logger.info("default_categories_seeded", created=created)
        logger.info("startup_complete", port=settings.port)

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        app.state.db.dispose()

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("family_ledger.main:app", host=settings.host, port=settings.port)


app = create_app()
