"""Shared API dependencies for sessions, configuration and the admin guard."""

import ipaddress
import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from coupon_allocator.core.settings import Settings, get_settings
from coupon_allocator.db.session import get_db
from coupon_allocator.services.allocator import AllocatorService

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_allocator_service_dep(config: SettingsDep) -> AllocatorService:
    """Get an AllocatorService bound to the active settings."""
    return AllocatorService.from_settings(config)


AllocatorDep = Annotated[AllocatorService, Depends(get_allocator_service_dep)]


def client_origin(request: Request) -> str | None:
    """Return the network address of the caller, if the server knows it."""
    return request.client.host if request.client else None


def _is_loopback(host: str | None) -> bool:
    if not host:
        return False
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return host == "localhost"


def require_admin(
    request: Request,
    config: SettingsDep,
    x_admin_token: Annotated[str | None, Header()] = None,
) -> None:
    """Guard destructive and audit endpoints.

    Disabled endpoints answer 404 so that production deployments do not even
    advertise them. When an admin token is configured the caller must present
    it in ``X-Admin-Token``; without one only loopback callers are accepted.

    Raises:
        HTTPException: If the endpoints are disabled or the caller is not allowed
    """
    if not config.admin_endpoints_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    if config.admin_token:
        supplied = (x_admin_token or "").encode()
        if supplied and secrets.compare_digest(supplied, config.admin_token.encode()):
            return
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")

    if _is_loopback(client_origin(request)):
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
