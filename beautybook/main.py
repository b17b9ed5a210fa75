import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Import models so every table is registered with SQLAlchemy Base
from . import models  # noqa: F401
from .config import DEBUG, FRONTEND_URL
from .database import Base, engine
from .domain.analytics.router import router as analytics_router
from .domain.appointments.router import guest_router as guest_booking_router
from .domain.appointments.router import router as appointments_router
from .domain.calendar.router import router as calendar_router
from .domain.customers.router import router as customers_router
from .domain.loyalty.router import router as loyalty_router
from .domain.payments.router import router as payments_router
from .domain.providers.router import router as providers_router
from .domain.reviews.router import router as reviews_router
from .domain.scheduling.router import router as availability_router
from .domain.waitlist.router import router as waitlist_router
from .shared.errors import BookingError

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
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="BeautyBook API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    """Domain errors carry their own status code"""
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} - {exc.message}")
    content = {"error": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=content)


def _error_details(errors: list) -> list:
    return [{"loc": [str(part) for part in e.get("loc", ())], "msg": e.get("msg")} for e in errors]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request body and query validation failures are 400s with the first message"""
    errors = exc.errors()
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ())[1:])
        # pydantic prefixes messages from custom validators with "Value error, "
        msg = first.get("msg", message).removeprefix("Value error, ")
        message = f"{field}: {msg}" if field else msg
    return JSONResponse(status_code=400, content={"error": message, "details": _error_details(errors)})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} - Error: {exc}")
    message = f"Internal server error: {exc}" if DEBUG else "Internal server error"
    return JSONResponse(status_code=500, content={"error": message})


# CORS Configuration
ALLOWED_ORIGINS = [FRONTEND_URL, "http://localhost:3000"]
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(availability_router)
app.include_router(appointments_router)
app.include_router(guest_booking_router)
app.include_router(payments_router)
app.include_router(reviews_router)
app.include_router(analytics_router)
app.include_router(providers_router)
app.include_router(loyalty_router)
app.include_router(customers_router)
app.include_router(waitlist_router)
app.include_router(calendar_router)


@app.get("/")
def root():
    return {"message": "BeautyBook API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
