"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eventify.config import settings
from eventify.database import Base, engine
from eventify.errors import HTTP_STATUS, DomainError, ValidationError
from eventify.services.locks import EventLockRegistry
from eventify.validation import field_errors

# Import routers
from eventify.routers import admin, events, registrations, users

# Import all models so Base.metadata knows about them
from eventify.models.user import User                   # noqa: F401
from eventify.models.event import Event                 # noqa: F401
from eventify.models.registration import Registration   # noqa: F401

logging.basicConfig(level=settings.LOG_LEVEL.upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Eventify",
    description="Municipal event listing and registration",
    version="0.1.0",
)
app.state.event_locks = EventLockRegistry()

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(registrations.router, prefix="/api/registrations", tags=["Registrations"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


@app.exception_handler(DomainError)
def domain_error_handler(request: Request, exc: DomainError):
    """Map domain errors to their HTTP status with a stable JSON body."""
    status_code = HTTP_STATUS[exc.code]
    logger.info("%s %s -> %d %s", request.method, request.url.path, status_code, exc.code.value)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report request body/query errors in the same shape as ValidationError."""
    return domain_error_handler(request, ValidationError(field_errors(exc.errors())))


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
