import logging
from fastapi import FastAPI, APIRouter, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError

from tracker_server.api_service.core.database import dispose_db, init_db
from tracker_server.api_service.core.settings import settings
from tracker_server.api_service.api_v1.endpoints import categories, charts, goals, records, system, timer
from tracker_server.processing_service.logic.settings import settings as engine_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting up Time Tracker API Service...")
    try:
        await init_db()
        logger.info("Database initialized successfully.")
        logger.info(f"Serving owner {settings.OWNER_ID}; day buckets in {engine_settings.LOCAL_TZ}")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    yield

    logger.info("Shutting down Time Tracker API Service...")
    await dispose_db()


app = FastAPI(
    title="Time Tracker API Service",
    description="Records, categories, goals, timer and aggregated charts for personal time tracking.",
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs",
    redoc_url=f"{settings.API_V1_STR}/redoc",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SQLAlchemyError)
async def data_unavailable_handler(request: Request, exc: SQLAlchemyError):
    # Storage failures surface as one generic condition; nothing is retried here.
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Data unavailable"},
    )


# Create API v1 router
api_v1_router = APIRouter(prefix=settings.API_V1_STR)

# Include all endpoint routers
api_v1_router.include_router(records.router, prefix="/records", tags=["Records"])
api_v1_router.include_router(categories.router, prefix="/categories", tags=["Categories"])
api_v1_router.include_router(goals.router, prefix="/goals", tags=["Goals"])
api_v1_router.include_router(timer.router, prefix="/timer", tags=["Timer"])
api_v1_router.include_router(charts.router, prefix="/charts", tags=["Charts"])
api_v1_router.include_router(system.router, prefix="/system", tags=["System"])

# Include the v1 router in the main app
app.include_router(api_v1_router)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to the Time Tracker API Service",
        "version": settings.VERSION,
        "docs": f"{settings.API_V1_STR}/docs"
    }


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy", "service": "tracker-api"}


if __name__ == "__main__":
    import uvicorn
    logger.info("Starting Uvicorn server for development...")
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
