import logging
from datetime import datetime, timezone

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

load_dotenv()

from bd_scoring.config import settings
from bd_scoring.core.dependencies import get_scoring_service
from bd_scoring.core.exceptions import (
    BatchJobNotFound,
    CalculationError,
    Cancelled,
    ConfigurationError,
    InvalidData,
    InvalidPagination,
)
from bd_scoring.routers.batch import router as batch_router
from bd_scoring.routers.health import router as health_router
from bd_scoring.routers.scoring import router as scoring_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


# SWAGGER UI - tag display order
_OPENAPI_TAGS = [
    {"name": "Root"},
    {"name": "Health"},
    {"name": "Scoring"},
    {"name": "Batch Jobs"},
]

# FASTAPI APPLICATION CONFIGURATION
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=_OPENAPI_TAGS,
)


def _error(status_code: int, error_code: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code,
            "message": message,
            "details": details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


# REGISTER EXCEPTION HANDLERS
@app.exception_handler(InvalidData)
async def invalid_data_handler(request: Request, exc: InvalidData):
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_DATA", exc.reason, {"errors": exc.errors})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_CONFIGURATION", exc.reason, {"errors": exc.errors})


@app.exception_handler(InvalidPagination)
async def invalid_pagination_handler(request: Request, exc: InvalidPagination):
    return _error(
        status.HTTP_400_BAD_REQUEST,
        "INVALID_PAGINATION",
        str(exc),
        {"page": exc.page, "page_size": exc.page_size, "max_page_size": exc.max_page_size},
    )


@app.exception_handler(BatchJobNotFound)
async def batch_job_not_found_handler(request: Request, exc: BatchJobNotFound):
    return _error(status.HTTP_404_NOT_FOUND, "BATCH_JOB_NOT_FOUND", str(exc), {"job_id": exc.job_id})


@app.exception_handler(Cancelled)
async def cancelled_handler(request: Request, exc: Cancelled):
    return _error(status.HTTP_409_CONFLICT, "CANCELLED", exc.message)


@app.exception_handler(CalculationError)
async def calculation_error_handler(request: Request, exc: CalculationError):
    logger.error("calculation_error", extra={"path": request.url.path, "error": exc.message})
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "CALCULATION_ERROR", exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR", "Request validation failed")
    err = errors[0]
    if "json_invalid" in err.get("type", ""):
        return _error(status.HTTP_400_BAD_REQUEST, "INVALID_REQUEST", "Malformed JSON request body")
    field = ".".join(str(part) for part in err.get("loc", []) if part != "body")
    return _error(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        err.get("msg", "Request validation failed"),
        {"field": field, "type": err.get("type")} if field else None,
    )


# REGISTER ROUTERS (order matches _OPENAPI_TAGS / Swagger UI display order)
app.include_router(health_router)
app.include_router(scoring_router)
app.include_router(batch_router)


# ROOT ENDPOINT
@app.get("/", tags=["Root"], summary="Root endpoint")
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        },
        "status": "running"
    }


# SHUTDOWN EVENT
@app.on_event("shutdown")
def shutdown_event():
    logger.info("application_shutdown")
    get_scoring_service().shutdown()


# RUN WITH UVICORN
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "bd_scoring.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
