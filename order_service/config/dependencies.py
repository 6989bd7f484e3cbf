from fastapi import Depends, HTTPException, Request, status

from order_service.config import factory
from order_service.config.settings import Settings
from order_service.order.domain.service import OrderService

# ----------------------------
# Dependency Injection Functions
# ----------------------------


def get_settings() -> Settings:
    return factory.get_settings()


def get_order_service() -> OrderService:
    return factory.get_order_service()


def get_current_user(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """
    Resolve the caller identity once per request.

    Token validation happens upstream; the gateway forwards the authenticated
    username in ``settings.security.identity_header``.
    """
    identity = request.headers.get(settings.security.identity_header, "").strip()
    if not identity:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
