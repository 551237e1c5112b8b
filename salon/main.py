import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models  # noqa: F401 - registers the tables
from .config import APPOINTMENT_SWEEP_INTERVAL_SECONDS, APPOINTMENT_SWEEP_MODE, FRONTEND_URL
from .database import Base, SessionLocal, engine, execute, get_db
from .errors import TransientStoreError
from .domain.catalog import router as catalog_router
from .domain.clients import router as clients_router
from .domain.sales import router as sales_router
from .domain.scheduling.router import router as appointments_router
from .domain.settings import router as settings_router
from .domain.settings.service import ensure_default_settings
from .domain.staff import router as staff_router
from .routes import auth_router
from .routes.status_automation import router as status_router
from .services.status_automation import appointment_sweeper

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
    except SQLAlchemyError as e:
        # Another worker may have created them first
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")
            raise

    db = SessionLocal()
    try:
        seeded = ensure_default_settings(db)
        if seeded:
            logger.info(f"Seeded default settings: {seeded}")
    finally:
        db.close()

    sweep_task = None
    if APPOINTMENT_SWEEP_MODE == "inprocess":
        sweep_task = asyncio.create_task(
            appointment_sweeper.run_forever(APPOINTMENT_SWEEP_INTERVAL_SECONDS)
        )
    else:
        logger.info(f"In-process appointment sweep disabled (mode={APPOINTMENT_SWEEP_MODE})")

    yield

    logger.info("Application shutting down...")
    if sweep_task is not None:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            logger.info("Appointment sweep stopped")


app = FastAPI(title="Salon API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed payloads are client errors: answer 400 with the field errors"""
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    return JSONResponse(status_code=400, content={"detail": errors})


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"❌ Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Temporary storage error, please retry"})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise
    duration_ms = (time.time() - start) * 1000
    logger.info(f"{request.method} {request.url.path} → {response.status_code} ({duration_ms:.0f}ms)")
    return response


# CORS Configuration
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:3000").split(",")
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth_router)
app.include_router(clients_router)
app.include_router(staff_router)
app.include_router(catalog_router)
app.include_router(appointments_router)
app.include_router(sales_router)
app.include_router(settings_router)
app.include_router(status_router)


@app.get("/")
def root():
    return {"message": "Salon API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/db")
def database_health_check(db: Session = Depends(get_db)):
    """Check database connectivity for monitoring"""
    try:
        start_time = time.time()
        execute(db, "SELECT 1")
        response_time = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "database": {"connected": True, "response_time_ms": round(response_time, 2)},
        }
    except TransientStoreError as e:
        return {"status": "unhealthy", "database": {"connected": False, "error": str(e.__cause__)}}
