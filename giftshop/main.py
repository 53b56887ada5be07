from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from prometheus_fastapi_instrumentator import Instrumentator

from giftshop.version import VERSION
from giftshop.api import admin, auth, catalog, dashboard, intake, uploads
from giftshop.core.config import settings
from giftshop.core.errors import IntakeValidationError, Redirect

logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    for route in app.routes:
        if hasattr(route, "methods") and hasattr(route, "path"):
            logger.debug("%s %s", sorted(route.methods), route.path)
    if settings.PREVIEW_MODE:
        logger.warning("PREVIEW_MODE is on: orders and uploads are not persisted")
    yield

# Create instrumentator first
instrumentator = Instrumentator()

app = FastAPI(title="Giftshop Service", version=VERSION, lifespan=lifespan)

# Instrument the app BEFORE adding routes or middleware
instrumentator.instrument(app).expose(
    app,
    include_in_schema=False,
    endpoint="/metrics",
    should_gzip=True,
)

@app.exception_handler(Redirect)
async def redirect_handler(request: Request, exc: Redirect):
    return RedirectResponse(exc.location, status_code=303)

@app.exception_handler(IntakeValidationError)
async def intake_validation_handler(request: Request, exc: IntakeValidationError):
    return JSONResponse(status_code=422, content={"detail": "Invalid submission", "errors": exc.errors})

@app.get("/health")
def health(): return {"status": "ok"}

@app.get("/v1/_info")
def info(): return {"service": "giftshop", "version": VERSION}

app.include_router(catalog.router, tags=["catalog"])
app.include_router(intake.router, tags=["intake"])
app.include_router(uploads.router, tags=["uploads"])
app.include_router(auth.router, tags=["auth"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(admin.router, prefix="/admin", tags=["admin"])
