import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

# Every model module must be imported before create_all sees the metadata
from . import models, models_job, models_notification  # noqa: F401
from .config import ALLOWED_ORIGINS
from .database import Base, engine
from .domain.contracts.router import router as contracts_router
from .domain.customers.router import router as customers_router
from .domain.jobs.router import router as jobs_router
from .domain.jobs.router import technician_router
from .domain.technicians.router import router as technicians_router
from .domain.vendors.router import router as vendors_router
from .routes.auth import router as auth_router
from .routes.notifications import router as notifications_router
from .routes.status_automation import router as status_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("arq").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Field service API starting")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("✅ Schema ready")
    except SQLAlchemyError as e:
        # Concurrent workers can race on CREATE TABLE
        if "already exists" in str(e):
            logger.info("Schema already created by another process")
        else:
            logger.error(f"❌ Could not create schema: {e}")

    yield
    logger.info("👋 Field service API stopped")


app = FastAPI(title="Field Service API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """A malformed Authorization header is an auth failure (401), everything else stays 422"""
    errors = exc.errors()
    if any("authorization" in str(error.get("loc", "")).lower() for error in errors):
        logger.warning(f"⚠️ Bad Authorization header on {request.url.path}")
        return JSONResponse(status_code=401, content={"detail": "Not authenticated"})

    logger.warning(f"⚠️ Validation failed on {request.method} {request.url.path}: {errors}")
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


@app.middleware("http")
async def log_unhandled_errors(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as e:
        logger.error(f"❌ {request.method} {request.url.path} failed: {e}")
        raise


logger.info(f"CORS origins: {ALLOWED_ORIGINS}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(customers_router)
app.include_router(contracts_router)
app.include_router(jobs_router)
app.include_router(technician_router)
app.include_router(technicians_router)
app.include_router(vendors_router)
app.include_router(notifications_router)
app.include_router(status_router)


@app.get("/")
def root():
    return {"message": "Field Service API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
