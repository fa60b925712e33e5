from fastapi import FastAPI

from backend.core.config import settings
from backend.core.observability import init_observability
from backend.core.observability.health import router as health_router
from backend.core.tenant.context import CompanyHeaderError
from backend.apps.einvoice.api import company_error_handler
from backend.apps.einvoice.api import router as formats_router


def create_app() -> FastAPI:
    init_observability(enable_metrics=settings.enable_metrics)

    app = FastAPI(title="0Admin-NEXT E-Rechnung")

    # Routers
    app.include_router(health_router)
    app.include_router(formats_router)

    app.add_exception_handler(CompanyHeaderError, company_error_handler)

    return app


# ASGI app instance
app = create_app()
