import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from . import models  # noqa: F401  (registers tables with Base)
from .database import Base, engine
from .domain.catalog.router import router as catalog_router
from .domain.customers.router import router as customers_router
from .domain.scheduling.calendar import get_business_calendar
from .domain.scheduling.locks import get_date_locks
from .domain.scheduling.router import router as scheduling_router
from .exceptions import SchedulingError, TransientError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    # Invalid business hours must stop the app before it serves a single slot
    get_business_calendar()

    locks = get_date_locks()
    client = getattr(locks, "client", None)
    if client is not None:
        try:
            client.ping()  # Connection test
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed - bookings will return 503 until it recovers: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Glam Booking API", version=__version__, lifespan=lifespan)


@app.exception_handler(SchedulingError)
async def scheduling_exception_handler(request: Request, exc: SchedulingError):
    """Map booking core errors to HTTP responses"""
    if exc.status_code >= 500 and not isinstance(exc, TransientError):
        logger.error(f"{request.method} {request.url.path} - {type(exc).__name__}: {exc.message}")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    content = {"detail": exc.message, "error": type(exc).__name__}
    if exc.details:
        content["context"] = exc.details

    headers = None
    if isinstance(exc, TransientError):
        headers = {"Retry-After": str(exc.retry_after)}
        logger.warning(f"{request.method} {request.url.path} - busy, retry after {exc.retry_after}s")
    else:
        logger.info(f"{request.method} {request.url.path} - {exc.status_code}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry the raw ValueError raised by a field validator
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        errors.append(error)
    return errors


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "https://queensglam.fr,https://www.queensglam.fr,http://localhost:5173,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["Retry-After"],
)

# Routes
app.include_router(catalog_router)
app.include_router(customers_router)
app.include_router(scheduling_router)


@app.get("/")
def root():
    return {"message": "Glam Booking API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
