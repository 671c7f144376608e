"""API route registration."""

from fastapi import FastAPI

from memlane.observability.logging import get_logger

logger = get_logger(__name__)


def register_routes(app: FastAPI, *, metrics_path: str | None = "/metrics") -> None:
    """Register all routes with the FastAPI application.

    Args:
        app: FastAPI application instance
        metrics_path: Where to serve Prometheus metrics; None disables them
    """
    from memlane.api.routes.health import get_metrics
    from memlane.api.routes.health import router as health_router
    from memlane.api.routes.identity import router as identity_router
    from memlane.api.routes.memory import router as memory_router
    from memlane.api.routes.review import router as review_router
    from memlane.api.routes.session import router as session_router

    app.include_router(health_router, tags=["Health"])
    app.include_router(identity_router, tags=["Identity"])
    app.include_router(memory_router, tags=["Memory"])
    app.include_router(session_router, tags=["Session"])
    app.include_router(review_router, tags=["Review"])

    if metrics_path:
        app.add_api_route(metrics_path, get_metrics, methods=["GET"], tags=["Health"])

    logger.info("routes_registered", metrics_path=metrics_path)
