import logging
from urllib.parse import urlparse

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError, TimeoutError as SQLAlchemyTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import models  # noqa: F401
from app.api import probes
from app.api.v1.routes import router as api_router
from app.core.config import get_settings, parse_cors_origins
from app.core.database import Base, engine
from app.core.errors import AppError
from app.core.logging import configure_logging
from app.middlewares.rate_limit import limiter

settings = get_settings()

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)
app.state.limiter = limiter


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg") or "Invalid request"
    return _error(400, f"{location}: {message}" if location else message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.info("Rate limit hit on %s %s: %s", request.method, request.url.path, exc.detail)
    return _error(429, f"Rate limit exceeded: {exc.detail}")


@app.exception_handler(SQLAlchemyTimeoutError)
async def sqlalchemy_timeout_handler(request: Request, exc: SQLAlchemyTimeoutError):
    logger.warning("Database pool timeout on %s %s: %s", request.method, request.url.path, exc)
    return _error(503, "Service is busy. Please retry in a moment.")


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return _error(500, "Database error")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error")


def _allowed_origins() -> list[str]:
    origins = parse_cors_origins(settings.cors_origins or "")
    parsed = urlparse(str(settings.app_base_url or "").strip())
    if parsed.scheme and parsed.netloc:
        origins.append(f"{parsed.scheme}://{parsed.netloc}")
    return list(dict.fromkeys(origins))


allow_origins = _allowed_origins()
logger.info("CORS allow_origins=%s", allow_origins)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    # Browsers only expose the packet filename when this header is listed.
    expose_headers=["Content-Disposition"],
)

app.include_router(api_router, prefix=settings.api_prefix)
app.include_router(probes.router, tags=["probes"])


@app.on_event("startup")
def ensure_storage_and_tables():
    if not settings.stripe_configured:
        logger.warning("STRIPE_SECRET_KEY is not set. Dispute and packet endpoints will return 503.")

    for directory in (settings.uploads_dir, settings.packets_dir):
        directory.mkdir(parents=True, exist_ok=True)

    if not settings.auto_create_tables:
        return

    # Optional local fallback for fresh environments.
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as exc:
        logger.warning("DB unavailable on startup, skipping table creation: %s", exc)


@app.get(f"{settings.api_prefix}/health")
def health():
    return {"ok": True, "stripe_configured": settings.stripe_configured}
