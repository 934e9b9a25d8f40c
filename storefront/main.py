"""
FastAPI Application Entry Point

ILIGAN Food Storefront - session and view controller API.
Supports both the mock backend (development) and Supabase (production).

Every visitor gets a storefront context (backend client, session observer,
view router) identified by a cookie. Each endpoint applies one screen
callback to that context and returns the resulting view.

Endpoints:
    - GET /api/view: Current screen, props and layout
    - POST /api/navigate: Change page
    - PUT /api/cart: Replace cart contents
    - POST /api/orders/select: Track an order
    - DELETE /api/orders/select: Stop tracking
    - POST /api/auth/sign-in: Email/password sign-in
    - POST /api/auth/sign-out: Sign out
    - DELETE /api/session: Tear down the visitor's context
    - GET /health: System health check

Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.core.config import Settings, get_settings, setup_logging
from storefront.schemas import (
    CartUpdate,
    ErrorResponse,
    HealthResponse,
    NavigateRequest,
    OrderSelect,
    SignInRequest,
    ViewResponse,
)
from storefront.services.backend.base import BaseBackendService
from storefront.session.context import BackendFactory, ContextRegistry, StorefrontContext

logger = logging.getLogger(__name__)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_registry(request: Request) -> ContextRegistry:
    return request.app.state.registry


async def get_context(
    request: Request,
    response: Response,
    registry: ContextRegistry = Depends(get_registry),
) -> StorefrontContext:
    """
    Find or start the calling visitor's storefront context.

    A new context means a new visitor id, which goes back out as a cookie.
    """
    settings: Settings = request.app.state.settings
    cookie_name = settings.session_cookie_name
    requested = request.cookies.get(cookie_name)

    visitor_id, context = await registry.get_or_create(requested)
    if visitor_id != requested:
        response.set_cookie(
            cookie_name,
            visitor_id,
            httponly=True,
            samesite="lax",
            secure=settings.is_production,
        )
    return context


def view_of(context: StorefrontContext) -> ViewResponse:
    return ViewResponse.from_router(context.router)


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    backend_factory: Optional[BackendFactory] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to get_settings())
        backend_factory: Backend builder for new visitor contexts
            (defaults to create_backend, tests inject mocks)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {settings.app_name}")
        logger.info(f"   Version: {settings.app_version}")
        logger.info(f"   Environment: {settings.env_mode.value}")
        logger.info(f"   Debug: {settings.debug}")
        logger.info("=" * 60)

        if settings.use_real_services:
            missing = settings.validate_backend_config()
            if missing:
                logger.error(f"⚠️ Missing backend config: {missing}")

        # One backend client shared by every /health request
        app.state.health_backend = app.state.registry.new_backend()

        yield  # Application runs

        # Shutdown
        logger.info("Shutting down...")
        await app.state.registry.close_all()
        await app.state.health_backend.close()
        logger.info("✅ Storefront contexts closed")

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Session and view controller for the ILIGAN Food storefront. "
            "Supports a mock backend for development and Supabase for production."
        ),
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.registry = ContextRegistry(settings, backend_factory)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # ROOT & HEALTH ENDPOINTS
    # =========================================================================

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """API root with navigation links."""
        return {
            "message": f"🍔 Welcome to {settings.app_name}",
            "version": settings.app_version,
            "environment": settings.env_mode.value,
            "documentation": "/docs",
            "view": "/api/view",
            "health": "/health",
        }

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(
        request: Request,
        registry: ContextRegistry = Depends(get_registry),
    ) -> HealthResponse:
        """Verify the backend is reachable."""
        backend: BaseBackendService = request.app.state.health_backend
        healthy = await backend.health_check()
        return HealthResponse(
            status="operational" if healthy else "degraded",
            backend="healthy" if healthy else "unhealthy",
            backend_provider=backend.provider_name,
            active_sessions=len(registry),
            timestamp=datetime.now(),
        )

    # =========================================================================
    # VIEW ENDPOINTS
    # =========================================================================

    @app.get("/api/view", response_model=ViewResponse, tags=["View"])
    async def current_view(context: StorefrontContext = Depends(get_context)) -> ViewResponse:
        """Current screen, its props and the surrounding layout."""
        return view_of(context)

    @app.post("/api/navigate", response_model=ViewResponse, tags=["View"])
    async def navigate(
        body: NavigateRequest,
        context: StorefrontContext = Depends(get_context),
    ) -> ViewResponse:
        context.router.set_page(body.page)
        return view_of(context)

    @app.put("/api/cart", response_model=ViewResponse, tags=["Cart"])
    async def replace_cart(
        body: CartUpdate,
        context: StorefrontContext = Depends(get_context),
    ) -> ViewResponse:
        context.router.set_cart(item.to_model() for item in body.items)
        return view_of(context)

    @app.post("/api/orders/select", response_model=ViewResponse, tags=["Orders"])
    async def select_order(
        body: OrderSelect,
        context: StorefrontContext = Depends(get_context),
    ) -> ViewResponse:
        """Select an order and open its tracking page."""
        context.router.track_order(body.to_model())
        return view_of(context)

    @app.delete("/api/orders/select", response_model=ViewResponse, tags=["Orders"])
    async def clear_order(context: StorefrontContext = Depends(get_context)) -> ViewResponse:
        context.router.set_selected_order(None)
        return view_of(context)

    # =========================================================================
    # AUTH ENDPOINTS
    # =========================================================================

    @app.post(
        "/api/auth/sign-in",
        response_model=ViewResponse,
        responses={401: {"model": ErrorResponse}},
        tags=["Auth"],
    )
    async def sign_in(
        body: SignInRequest,
        context: StorefrontContext = Depends(get_context),
    ) -> ViewResponse:
        result = await context.sign_in(body.email, body.password)
        if not result.success:
            raise HTTPException(status_code=401, detail=result.error_message or "Sign-in failed")
        return view_of(context)

    @app.post("/api/auth/sign-out", response_model=ViewResponse, tags=["Auth"])
    async def sign_out(context: StorefrontContext = Depends(get_context)) -> ViewResponse:
        """
        Sign out. A rejected sign-out is only logged; the unchanged view
        comes back either way.
        """
        await context.router.sign_out()
        return view_of(context)

    @app.delete("/api/session", tags=["Auth"])
    async def end_session(
        request: Request,
        response: Response,
        registry: ContextRegistry = Depends(get_registry),
    ) -> dict[str, Any]:
        cookie_name = settings.session_cookie_name
        closed = await registry.discard(request.cookies.get(cookie_name, ""))
        response.delete_cookie(cookie_name)
        return {"success": True, "closed": closed}

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")

        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal Server Error",
                "detail": str(exc) if settings.debug else "An unexpected error occurred",
            },
        )

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run("storefront.main:app", host=_settings.api_host, port=_settings.api_port)
