"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from zakat_admin.config import settings
from zakat_admin.domain.models import AuthContext
from zakat_admin.infrastructure.clients.erp import ErpClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_auth_context(request: Request) -> AuthContext | None:
    """Caller's bearer token, falling back to the configured service token"""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token:
        return AuthContext(token=token)
    if settings.erp_api_token:
        return AuthContext(token=settings.erp_api_token)
    return None


def get_erp_client(auth: AuthContext | None = Depends(get_auth_context)) -> ErpClient:
    """Provide ERP API client instance"""
    return ErpClient(auth=auth)
