"""OIDC adapter API server.

Running the Server
------------------

Development (with auto-reload):
    oidc-adapter serve --reload

Production:
    oidc-adapter serve --host 0.0.0.0 --port 8000

Endpoints
---------
- /                 : API information
- /health           : Health check with version
- /status           : Provider discovery status
- /oidc/login       : Redirect to the identity provider
- /oidc/callback    : Provider redirect target
- /docs             : OpenAPI documentation
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from oidc_adapter.api.routers.health import router as health_router
from oidc_adapter.api.routers.oidc import router as oidc_router
from oidc_adapter.auth.provider_factory import get_provider_instance
from oidc_adapter.auth.provider_oidc import OIDCProvider
from oidc_adapter.version import __version__


def create_app(provider: OIDCProvider | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        provider: Provider to serve (built from settings at startup if None)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting OIDC adapter API")
        app.state.provider = provider or await get_provider_instance()
        await app.state.provider.init()
        yield
        logger.info("Shutting down OIDC adapter API")

    app = FastAPI(
        title="OIDC Adapter API",
        description="Link OpenID Connect identities to local users",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "OIDC Adapter API",
            "version": __version__,
            "login": "/oidc/login",
            "docs": "/docs",
        }

    app.include_router(health_router)
    app.include_router(oidc_router)

    return app


# Create application instance
app = create_app()


# Main entry point for uvicorn
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "oidc_adapter.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
