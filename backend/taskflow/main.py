"""
main.py — FastAPI Application Entrypoint

Purpose:
- Initialize application services (logging, config).
- Register API routers.
- Render every error as `{"error": message}`.
- Answer bare OPTIONS requests and define the health endpoint.
- Provide `app` object used by ASGI server (uvicorn / hypercorn).

This file should stay clean — no business logic here.
"""

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskflow.api.deps import SESSION_HEADER
from taskflow.api.v1 import admin, auth, briefing, categorize, history, settings, tasks
from taskflow.core.config import get_settings
from taskflow.core.errors import TaskFlowError, describe_validation_error
from taskflow.core.logging import configure_logging, get_logger

# -----------------------------------------------------------------------------
# App Initialization
# -----------------------------------------------------------------------------

configure_logging(get_settings().LOG_LEVEL)
logger = get_logger(__name__)

app = FastAPI(
    title="TaskFlow Backend",
    description="Task management backend: sessions, tasks, history, settings and AI assist",
    version="0.1.0",
)

# -----------------------------------------------------------------------------
# Pre-flight & CORS
# -----------------------------------------------------------------------------

CORS_ALLOW_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type", SESSION_HEADER]

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": ", ".join(CORS_ALLOW_METHODS),
    "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
}

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=CORS_ALLOW_METHODS,
    allow_headers=CORS_ALLOW_HEADERS,
)


# Registered after CORSMiddleware, so it is the outermost layer and answers
# every OPTIONS request (browser pre-flights included) before CORS sees it.
@app.middleware("http")
async def answer_bare_options(request: Request, call_next):
    """Every OPTIONS request gets an empty 200 with the CORS allow headers."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=PREFLIGHT_HEADERS)
    return await call_next(request)

# -----------------------------------------------------------------------------
# Error envelopes
# -----------------------------------------------------------------------------

@app.exception_handler(TaskFlowError)
async def taskflow_error_handler(request: Request, exc: TaskFlowError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    message = describe_validation_error(exc) if exc.errors() else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})

# -----------------------------------------------------------------------------
# Router Registration
# -----------------------------------------------------------------------------

# Mount all v1 API routers under /api/v1 prefix
app.include_router(auth.router, prefix="/api/v1")
app.include_router(tasks.router, prefix="/api/v1")
app.include_router(history.router, prefix="/api/v1")
app.include_router(settings.router, prefix="/api/v1")
app.include_router(categorize.router, prefix="/api/v1")
app.include_router(briefing.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")

# -----------------------------------------------------------------------------
# Health Check
# -----------------------------------------------------------------------------

@app.get("/")
def root():
    return {"status": "ok", "message": "TaskFlow backend running"}
