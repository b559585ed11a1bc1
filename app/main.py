import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import auth
from app.config import settings
from app.core.context import build_auth_context
from app.core.errors import AuthError, RateLimited
from app.db.database import init_db
from app.logging_config import setup_logging

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Email OTP and Google sign-in with signed session tokens",
    version="0.1.0"
)


@app.on_event("startup")
def on_startup():
    """Configure logging, create tables, and build the auth context once."""
    setup_logging(settings.log_level)
    init_db()
    app.state.auth_context = build_auth_context(settings)
    logger.info("%s started", settings.app_name)


app.include_router(auth.router, prefix="/auth", tags=["Auth"])


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    headers = None
    if isinstance(exc, RateLimited):
        headers = {"Retry-After": str(exc.retry_after)}
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.detail)
    content = exc.to_body()
    if settings.debug and exc.detail:
        content["error"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Missing or malformed body fields are a 400 with one message per field."""
    errors = {}
    for err in exc.errors():
        loc = [str(part) for part in err["loc"] if part != "body"]
        errors[".".join(loc) or "body"] = err["msg"]
    return JSONResponse(
        status_code=400,
        content={"message": "Missing or invalid fields", "errors": errors},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Anything unexpected is a 500; the exception text is only exposed in debug mode."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"message": "Server error"}
    if settings.debug:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)
