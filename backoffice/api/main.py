from fastapi import FastAPI

from backoffice import __version__
from backoffice.core.config import get_settings
from backoffice.core.logging import configure_from_settings
from backoffice.api.routers import approvals, health

settings = get_settings()
configure_from_settings(settings)

app = FastAPI(
    title=settings.app_name,
    description="Dealership back-office approval workflows",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Include routers
app.include_router(health.router)
app.include_router(approvals.router, prefix="/api")


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }
