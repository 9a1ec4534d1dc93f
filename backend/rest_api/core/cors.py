"""
CORS setup.

The staff dashboard and the farmer app run on other origins. In production
the origins come from ALLOWED_ORIGINS (comma-separated); anywhere else the
usual local dev-server ports are allowed.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config.settings import settings

_LOCAL_PORTS = (3000, 5173, 8081)

LOCAL_ORIGINS = [
    f"http://{host}:{port}" for host in ("localhost", "127.0.0.1") for port in _LOCAL_PORTS
]


def get_cors_origins() -> list[str]:
    configured = [origin.strip() for origin in settings.allowed_origins.split(",")]
    return [origin for origin in configured if origin] or LOCAL_ORIGINS


def configure_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        # No preflight caching while developing
        max_age=0 if settings.environment == "development" else 600,
    )
