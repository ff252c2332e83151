"""
FastAPI Application Entry Point
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from callcenter.api.v1.routes import api_router
from callcenter.core.config import ConfigManager, Settings, get_settings
from callcenter.services.call_center_service import CallCenterService

# .env values also feed ${VAR} references in the YAML config
load_dotenv()

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[CallCenterService] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (default: environment)
        service: Pre-built call center service (tests inject their own)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan - startup and shutdown events.

        Startup:
        - Builds the call center service (pool store, dialer, history)

        Shutdown:
        - Cancels dialer timers so nothing fires into a torn-down dialer
        """
        # No-op when the server (or tests) already configured logging
        logging.basicConfig(
            level=settings.log_level.upper(),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        logger.info(f"Starting {settings.app_name} ({settings.environment})...")

        if service is not None:
            app.state.call_center = service
        else:
            config_manager = ConfigManager(env=settings.environment)
            app.state.call_center = CallCenterService.from_settings(settings, config_manager)

        logger.info(f"{settings.app_name} started successfully")

        yield  # Application is running

        logger.info(f"Shutting down {settings.app_name}...")
        try:
            await app.state.call_center.shutdown()
        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)
        logger.info(f"{settings.app_name} shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        description="Auto-dialer and retry pool for cash-on-delivery order confirmation calls",
        version="1.0.0",
        lifespan=lifespan
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routes
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        return {"message": f"{settings.app_name} API", "status": "running"}

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint.

        Returns basic health status and dialer state.
        """
        health = {"status": "healthy"}

        call_center = getattr(app.state, "call_center", None)
        if call_center is None:
            health["call_center"] = "not initialized"
        else:
            health["dialer_state"] = call_center.dialer.state.value
            health["pool_size"] = len(call_center.store)

        return health

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
