import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from promo_api.core.config import get_settings
from promo_api.core.errors import ServiceError
from promo_api.core.logging_config import setup_logging
from promo_api.core.rate_limiter import RateLimiter
from promo_api.core.responses import error_response, fail
from promo_api.core.utils import isoformat_utc, utcnow
from promo_api.routers import auth as auth_router
from promo_api.routers import health as health_router
from promo_api.routers import link_accounts as link_accounts_router
from promo_api.routers import notifications as notifications_router
from promo_api.routers import product_actions as product_actions_router
from promo_api.routers import products as products_router
from promo_api.routers import users as users_router
from promo_api.services.auth_service import AuthService
from promo_api.services.link_accounts_service import LinkAccountsService
from promo_api.services.notifications_service import NotificationsService
from promo_api.services.product_actions_service import ProductActionsService
from promo_api.services.products_service import ProductsService
from promo_api.services.user_preferences_service import UserPreferencesService
from promo_api.services.user_profile_service import UserProfileService

logger = logging.getLogger("promo_api")

DEV_ORIGINS = (
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3001",
    "http://localhost:5173",
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers for a JSON-only API."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %s (%.1fms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response


def _timestamp() -> str:
    return isoformat_utc(utcnow())


def _register_exception_handlers(app: FastAPI, app_env: str) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return fail("Endpoint not found", 404, path=request.url.path, timestamp=_timestamp())
        return fail(str(exc.detail), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = "Invalid request"
        if errors:
            first = errors[0]
            where = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            detail = f"Invalid {where}: {first.get('msg')}" if where else f"Invalid request: {first.get('msg')}"
        return fail(detail, 400)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        message = str(exc) if app_env == "dev" else "Internal server error"
        return fail(message or "Internal server error", 500)


def create_app() -> FastAPI:
    """Factory compatível com uvicorn/gunicorn e com os testes."""
    settings = get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(title="GibiPromo Web API", version=settings.app_version)
    app.state.started_at = time.time()
    app.state.rate_limiter = RateLimiter()
    app.state.auth_service = AuthService()
    app.state.products_service = ProductsService()
    app.state.product_actions_service = ProductActionsService()
    app.state.notifications_service = NotificationsService()
    app.state.user_profile_service = UserProfileService()
    app.state.user_preferences_service = UserPreferencesService()
    app.state.link_accounts_service = LinkAccountsService()

    allowed_cors = set(settings.cors_origins)
    if settings.app_env != "prod":
        allowed_cors.update(DEV_ORIGINS)
    if allowed_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(allowed_cors),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")
    app.add_middleware(RequestLoggingMiddleware)

    _register_exception_handlers(app, settings.app_env)

    prefix = settings.api_prefix
    app.include_router(health_router.router, prefix=prefix)
    app.include_router(auth_router.router, prefix=prefix)
    app.include_router(product_actions_router.router, prefix=prefix)
    app.include_router(products_router.router, prefix=prefix)
    app.include_router(notifications_router.router, prefix=prefix)
    app.include_router(users_router.router, prefix=prefix)
    app.include_router(link_accounts_router.router, prefix=prefix)

    @app.get("/", include_in_schema=False)
    def root():
        return JSONResponse(
            {
                "message": "GibiPromo Web API",
                "version": settings.app_version,
                "status": "running",
                "timestamp": _timestamp(),
            }
        )

    logger.info("GibiPromo API ready (env=%s, prefix=%s)", settings.app_env, prefix)
    return app
