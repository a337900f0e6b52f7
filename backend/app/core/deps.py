"""Dependency injection: bearer-token auth and permission enforcement."""

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from app.core.rbac import permissions_for
from app.core.security import decode_access_token, role_from_claims
from app.schemas.auth import CurrentAdmin

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_admin(token: str = Depends(oauth2_scheme)) -> CurrentAdmin:
    """Decode JWT and return CurrentAdmin. Raises 401 on invalid/expired token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
    except JWTError as exc:
        logger.warning("Rejected access token: %s", exc)
        raise credentials_exception

    user_id = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    role = role_from_claims(payload)
    return CurrentAdmin(
        id=user_id,
        email=payload.get("email", ""),
        role=role or "viewer",
        permissions=permissions_for(role),
    )


def require_permission(*required: str):
    """Dependency factory: checks the admin has ALL required permissions."""

    async def checker(admin: CurrentAdmin = Depends(get_current_admin)) -> CurrentAdmin:
        missing = [p for p in required if p not in admin.permissions]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permissions: {', '.join(missing)}",
            )
        return admin

    return checker
