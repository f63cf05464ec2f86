"""
FastAPI entry point for Expense Ledger.

Run with: uvicorn app.main:app

Components are built in the lifespan handler, not at import, so importing
this module never requires JWT_KEY. Startup fails fast when it is missing.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from app import routes
from expense_ledger import __version__
from expense_ledger.config import get_settings
from expense_ledger.orchestrator import AppComponents, create_app_components


def get_application(components: Optional[AppComponents] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        components: Pre-built components (tests pass an in-memory setup).
                    Built from the environment at startup when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.components = components or create_app_components()
        await app.state.components.start()
        yield
        await app.state.components.close()

    app = FastAPI(
        title=get_settings().app.project_name,
        description="Personal income/expense ledger with per-user authentication",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(routes.router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Liveness probe for load balancers."""
        return {"status": "operational", "service": app.title}

    return app


app = get_application()
