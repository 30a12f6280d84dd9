"""
Express Tracking Service
Carrier detection and mock shipment lookups over HTTP
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import os

from shared.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from app.core_settings import get_settings
from app.api.routes import router as tracking_router
from app.domain.errors import InternalError, TrackingError
from app.infrastructure.wiring import get_tracking_service

settings = get_settings()

SERVICE_NAME = settings.SERVICE_NAME
SERVICE_VERSION = os.getenv("SERVICE_VERSION", "1.0.0")
SERVICE_DESCRIPTION = "Express tracking lookup service"
HEALTH_MESSAGE = "快递查询服务运行正常"

setup_logging(
    service_name=SERVICE_NAME,
    level=settings.LOG_LEVEL,
    enable_file=bool(settings.LOG_FILE),
    log_file=settings.LOG_FILE
)

logger = get_logger(__name__)

def current_tracking_service():
    """The tracking service requests are served with, dependency overrides included"""
    provider = app.dependency_overrides.get(get_tracking_service, get_tracking_service)
    return provider()

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    logger.info(f"Starting {SERVICE_NAME} version {SERVICE_VERSION}")
    yield
    logger.info(f"Shutting down {SERVICE_NAME}")
    # Nothing to cancel when no request ever built the service
    if get_tracking_service in app.dependency_overrides or get_tracking_service.cache_info().currsize:
        await current_tracking_service().scheduler.shutdown()

app = FastAPI(
    title=SERVICE_NAME,
    description=SERVICE_DESCRIPTION,
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

@app.exception_handler(TrackingError)
async def tracking_error_handler(request: Request, exc: TrackingError):
    if isinstance(exc, InternalError):
        logger.error(f"Internal error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": InternalError.default_message})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "请求参数格式错误"})

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": "接口不存在"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": InternalError.default_message})

health_service = ServiceHealth(
    SERVICE_NAME,
    SERVICE_VERSION,
    message=HEALTH_MESSAGE,
    checks={"storage:history": lambda: current_tracking_service().history_store.ping()},
)
app.include_router(health_service.create_health_router(prefix="/api"))

app.include_router(tracking_router)

@app.get("/info")
async def info():
    """Service information endpoint"""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "description": SERVICE_DESCRIPTION,
        "environment": os.getenv("ENVIRONMENT", "development"),
        "endpoints": {
            "health": "/api/health",
            "ready": "/api/health/ready",
            "live": "/api/health/live",
            "metrics": "/api/metrics",
            "track": "/api/track",
            "couriers": "/api/couriers",
            "validate": "/api/validate",
            "history": "/api/history",
            "locality": "/api/locality",
            "docs": "/api/docs"
        }
    }

if settings.STATIC_DIR:
    # The front-end owns "/" when it is served from here
    app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")
else:
    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "status": "running",
            "docs": "/api/docs"
        }

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
