"""
REST API main application.
Entry point for the FastAPI REST server.
"""

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from rest_api.core.cors import configure_cors
from rest_api.core.lifespan import lifespan
from rest_api.core.middlewares import register_middlewares
from rest_api.routers.auth import router as auth_router
from rest_api.routers.dairy import router as dairy_router
from rest_api.routers.farmer import router as farmer_router
from rest_api.routers.milk import router as milk_router
from rest_api.routers.public import health_router
from rest_api.routers.staff import router as staff_router
from shared.config.settings import settings
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler


app = FastAPI(
    title="Digital Dairy REST API",
    description="Dairy cooperative back-office: members, staff and milk collection records",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

register_middlewares(app)
configure_cors(app)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(dairy_router)
app.include_router(farmer_router)
app.include_router(staff_router)
app.include_router(milk_router)


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rest_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=settings.debug,
    )
