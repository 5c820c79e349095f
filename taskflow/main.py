import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from taskflow.config import settings
from taskflow.database import init_models
from taskflow.exceptions import (
    TaskFlowError,
    NotFound,
    Unauthorized,
    Conflict,
    InvalidState,
    InvalidTransition,
    ValidationFailed,
)
from taskflow.routers.auth import router as auth_router
from taskflow.routers.users import router as users_router
from taskflow.routers.projects import router as projects_router
from taskflow.routers.tasks import router as tasks_router
from taskflow.routers.comments import router as comments_router
from taskflow.utils.clock import utcnow

# Registers every table on Base.metadata before create_all
from taskflow.models import user, project, tasks, comment  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

STATUS_CODES = {
    NotFound: status.HTTP_404_NOT_FOUND,
    Unauthorized: status.HTTP_403_FORBIDDEN,
    Conflict: status.HTTP_409_CONFLICT,
    InvalidState: status.HTTP_400_BAD_REQUEST,
    InvalidTransition: status.HTTP_400_BAD_REQUEST,
    ValidationFailed: 422,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    logger.info("TaskFlow API started")
    yield
    logger.info("TaskFlow API shutting down")


app = FastAPI(
    lifespan=lifespan,
    title="TaskFlow API",
    description="Projects, tasks and comments with role and ownership based access control",
    version="1.0.0",
)

# Enable CORS for the frontend
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=settings.CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_body(status_code: int, error: str, message: str, field_errors: dict | None = None) -> dict:
    return {
        "timestamp": utcnow().isoformat(),
        "status": status_code,
        "error": error,
        "message": message,
        "field_errors": field_errors,
    }


@app.exception_handler(TaskFlowError)
async def taskflow_error_handler(request: Request, exc: TaskFlowError):
    status_code = STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    field_errors = exc.field_errors if isinstance(exc, ValidationFailed) else None
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, status_code, exc.message)
    return JSONResponse(
        status_code=status_code,
        content=error_body(status_code, exc.error, exc.message, field_errors),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    failed = ValidationFailed.from_pydantic(exc.errors())
    logger.warning("%s %s rejected: %s", request.method, request.url.path, failed.field_errors)
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(error_body(
            422, failed.error, failed.message, failed.field_errors
        )),
    )


# Global exception handler to ensure CORS headers on failure
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(500, "Internal Server Error", "An unexpected error occurred"),
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Credentials": "true"
        }
    )


app.include_router(auth_router)
app.include_router(users_router)
app.include_router(projects_router)
app.include_router(tasks_router)
app.include_router(comments_router)


@app.get("/")
def root():
    return {"message": "TaskFlow API running"}


@app.get("/health")
def health():
    return {"status": "UP", "timestamp": utcnow().isoformat()}
