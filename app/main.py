from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.router import api_router
from app.core.config import settings
from app.core.errors import ErrorResponse, FieldError, ServerError, ValidationErrorDetails
from app.db.async_session import shutdown_async_database, startup_async_database
from app.utils.logger import AppLogger, create_logger


def error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body, exclude_none=True))


def register_exception_handlers(app: FastAPI, logger: AppLogger) -> None:
    """Render every failure as ``{message, error_code, details}``."""

    @app.exception_handler(ServerError)
    async def server_error_handler(request: Request, exc: ServerError):
        return error_response(exc.status_code, exc.to_error_response())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            FieldError(
                field=".".join(str(part) for part in error["loc"] if part != "body"),
                message=error["msg"],
                value=jsonable_encoder(error.get("input")),
            )
            for error in exc.errors()
        ]
        body = ErrorResponse(
            message="Validation failed",
            error_code="VALIDATION_ERROR",
            details=ValidationErrorDetails(errors=errors),
        )
        return error_response(status.HTTP_400_BAD_REQUEST, body)

    @app.exception_handler(Exception)
    async def unknown_error_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled error",
            context="http",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        body = ErrorResponse(message="Unknown error occurred", error_code="UNKNOWN_ERROR")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, body)


def create_app(logger: Optional[AppLogger] = None) -> FastAPI:
    """Build the application and its root logger."""
    logger = logger or create_logger("TRAIN", settings.LOG_LEVEL, settings.LOG_COLORS)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description=settings.PROJECT_DESCRIPTION,
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        redirect_slashes=False,
    )
    app.state.logger = logger

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, logger)
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.on_event("startup")
    async def startup_event():
        logger.info("Starting up Train API...", context="startup")
        await startup_async_database(logger)
        logger.success("Train API startup completed", context="startup")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Shutting down Train API...", context="shutdown")
        await shutdown_async_database()
        logger.success("Train API shutdown completed", context="shutdown")

    @app.get("/")
    async def root():
        return {"status": "ok", "message": "Welcome to Train API"}

    return app


app = create_app()
