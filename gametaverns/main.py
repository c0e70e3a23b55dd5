import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from gametaverns.config import settings
from gametaverns.core.errors import (
    FUNCTIONS_PREFIX, error_envelope, envelope_http_exception_handler, envelope_validation_exception_handler
)
from gametaverns.modules.auth import routes as auth_routes
from gametaverns.modules.plays import routes as plays_routes
from gametaverns.modules.lending import routes as lending_routes
from gametaverns.modules.trades import routes as trades_routes
from gametaverns.modules.events import routes as events_routes
from gametaverns.modules.tournaments import routes as tournaments_routes
from gametaverns.modules.polls import routes as polls_routes
from gametaverns.modules.messages import routes as messages_routes
from gametaverns.modules.notifications import routes as notifications_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(StarletteHTTPException, envelope_http_exception_handler)
app.add_exception_handler(RequestValidationError, envelope_validation_exception_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if request.url.path.startswith(FUNCTIONS_PREFIX):
        return error_envelope(500, "An unexpected error occurred" if settings.is_production else str(exc))
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# CRUD routes
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(plays_routes.router, prefix="/api/v1")
app.include_router(lending_routes.router, prefix="/api/v1")
app.include_router(trades_routes.router, prefix="/api/v1")
app.include_router(events_routes.router, prefix="/api/v1")
app.include_router(tournaments_routes.router, prefix="/api/v1")
app.include_router(polls_routes.router, prefix="/api/v1")
app.include_router(messages_routes.router, prefix="/api/v1")

# Edge-function style endpoints
app.include_router(plays_routes.functions_router, prefix=FUNCTIONS_PREFIX)
app.include_router(messages_routes.functions_router, prefix=FUNCTIONS_PREFIX)
app.include_router(notifications_routes.functions_router, prefix=FUNCTIONS_PREFIX)


@app.on_event("startup")
async def startup_event():
    logger.info(f"Application startup ({settings.environment})")
    if not settings.supabase_service_role_key:
        logger.warning("SUPABASE_SERVICE_ROLE_KEY is not set; imports and notifications will run with the anon key")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to the GameTaverns API", "status": "healthy"}


@app.get("/health")
@limiter.exempt
async def health():
    return {"status": "healthy"}


@app.get("/ready")
@limiter.exempt
async def ready():
    """Readiness probe: extend here with a database ping if needed."""
    return {"status": "ready"}
