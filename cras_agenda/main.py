from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.responses import JSONResponse

import cras_agenda.db.base  # noqa: F401
from cras_agenda.api.main import api_router
from cras_agenda.core.errors import BusinessError, business_error_handler
from cras_agenda.core.logging import configure_logging, get_logger
from cras_agenda.core.settings import Env, settings
from cras_agenda.middlewares.telemetry import RequestContextMiddleware
from cras_agenda.version import APP_NAME, APP_VERSION, BUILD_TIME_UTC, GIT_SHA

configure_logging(json=settings.LOG_JSON, level=settings.LOG_LEVEL)

app = FastAPI(title="Agenda CRAS", version=APP_VERSION, debug=settings.DEBUG)

# --- Middlewares de contexto/log
app.add_middleware(RequestContextMiddleware)

# --- CORS (front-end da recepção/entrevistadores)
app.add_middleware(
    CORSMiddleware,
    allow_origins=(settings.cors_origins or ["*"]) if settings.DEBUG else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Segurança: HTTPS only em prod
if settings.APP_ENV == Env.PROD:
    app.add_middleware(HTTPSRedirectMiddleware)


# --- Security headers (HSTS, X-Content-Type-Options, etc.)
@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)

    if settings.APP_ENV == Env.PROD:
        response.headers["Strict-Transport-Security"] = (
            "max-age=15552000; includeSubDomains; preload"
        )

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "no-referrer"
    response.headers["Permissions-Policy"] = (
        "accelerometer=(), camera=(), geolocation=(), gyroscope=(), "
        "magnetometer=(), microphone=(), payment=(), usb=()"
    )
    response.headers["Content-Security-Policy"] = "default-src 'self'"
    return response


app.add_exception_handler(BusinessError, business_error_handler)

app.include_router(api_router)


# --- Endpoints
@app.get("/healthz", tags=["ops"])
def healthz():
    get_logger().info("health.check")
    return {"status": "ok", "env": settings.APP_ENV, "version": APP_VERSION}


@app.get("/version", tags=["ops"])
def version():
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "git_sha": GIT_SHA,
        "build_time_utc": BUILD_TIME_UTC,
        "env": settings.APP_ENV,
        "debug": settings.DEBUG,
    }


@app.exception_handler(404)
async def not_found(_, exc):
    detail = getattr(exc, "detail", None) or "Not Found"
    return JSONResponse({"detail": detail}, status_code=404)
