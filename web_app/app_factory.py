"""FastAPI application factory."""

from fastapi import FastAPI

from .api import api_router
from .auth import auth_router, resolve_session_identity
from .web import unauthorized_response, web_router
from .middleware.logging import LoggingMiddleware
from .router import Router


def build_router() -> Router:
    """Assemble the browser-facing router.

    Sign-in routes come first; the web routes end with the public
    ``/:id`` redirect, which must stay last.
    """
    router = Router(
        identity_resolver=resolve_session_identity,
        unauthorized_renderer=unauthorized_response,
    )
    router.include(auth_router)
    router.include(web_router)
    return router


def create_app(
    store,
    service,
    oauth,
    config,
) -> FastAPI:
    """Create and configure FastAPI application.
    
    Args:
        store: Link store instance
        service: LinkService instance
        oauth: GitHub OAuth client
        config: Configuration instance
        
    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Short Links",
        description="Short links with live click analytics",
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    
    # Store instances in app state for access in routes
    app.state.store = store
    app.state.service = service
    app.state.oauth = oauth
    app.state.config = config
    
    app.add_middleware(LoggingMiddleware)
    
    app.include_router(api_router, prefix="/api", tags=["API"])
    
    # Everything outside /api goes through the router
    router = build_router()
    app.state.router = router
    app.mount("/", router, name="web")
    
    return app
