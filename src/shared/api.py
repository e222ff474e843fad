"""FastAPI dependencies shared by every router."""

from fastapi import Header, HTTPException, Request

from identity.user.user import UserRole
from shared.database import Database


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_settings(request: Request):
    return request.app.state.settings


def require_admin(x_caller_role: str = Header(default="")) -> None:
    """Capability check for administrative endpoints.

    Authentication happens upstream; this only inspects the role the gateway
    forwarded in ``X-Caller-Role``, matched case-insensitively against
    ``UserRole``.
    """
    if x_caller_role.strip().lower() != UserRole.ADMIN.value.lower():
        raise HTTPException(status_code=403, detail="Administrator role required")
