"""HTTP middleware."""

from growthlab.api.middleware.request_id import RequestIdMiddleware, REQUEST_ID_HEADER

__all__ = ["RequestIdMiddleware", "REQUEST_ID_HEADER"]
