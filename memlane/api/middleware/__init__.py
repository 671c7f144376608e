"""API middleware package."""

from memlane.api.middleware.context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
