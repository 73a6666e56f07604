"""
FastAPI application for appointment availability and booking

Thin HTTP layer - scheduling rules live in app/services
"""
import uvicorn
from collections import defaultdict
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from contextlib import asynccontextmanager

from app.config.database import create_tables
from app.config.settings import get_settings
from app.core.middleware import (
    correlation_id_middleware, request_logging_middleware, scheduling_error_handler, value_error_handler
)
from app.core.monitoring import health_router
from app.api.v1.router import api_v1_router
from app.services.scheduling.errors import SchedulingError
from app.utils.my_logging import setup_logging

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    setup_logging()
    create_tables()
    print("🚀 Scheduling API starting up...")
    print(f"📅 Booking API available at /api/v1/")
    print(f"❤️  Health check at /health")

    if settings.DEBUG:
        routes_by_tag = defaultdict(list)
        for route in app.routes:
            if isinstance(route, APIRoute):
                tag = route.tags[0] if route.tags else "other"
                for method in route.methods:
                    routes_by_tag[tag].append((method, route.path))

        print("\n" + "=" * 80)
        print("📋 REGISTERED ROUTES:")
        print("=" * 80)
        for tag, routes in sorted(routes_by_tag.items()):
            print(f"\n[{tag.upper()}]")
            for method, path in sorted(routes, key=lambda x: (x[1], x[0])):
                print(f"  {method:8} {path}")
        print("=" * 80 + "\n")

    yield

    # Shutdown
    print("🛑 Scheduling API shutting down...")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title=settings.APP_NAME,
        description="Appointment availability, booking and rescheduling",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "PUT"],
        allow_headers=["*"],
    )

    # Add custom middleware
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(correlation_id_middleware)

    app.add_exception_handler(SchedulingError, scheduling_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)

    # Include routers
    app.include_router(health_router, prefix="/health", tags=["monitoring"])
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "api": "/api/v1/",
                "health": "/health",
                "docs": "/docs" if settings.DEBUG else "disabled"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
