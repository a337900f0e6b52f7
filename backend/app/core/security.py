"""Verification of access tokens issued by the hosted auth provider."""

from jose import JWTError, jwt

from app.core.config import settings


def decode_access_token(token: str) -> dict:
    """Decode and validate JWT. Raises JWTError on failure."""
    if not settings.SUPABASE_JWT_SECRET:
        raise JWTError("Token verification secret is not configured")
    return jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=[settings.ALGORITHM],
        audience=settings.JWT_AUDIENCE,
    )


def role_from_claims(payload: dict) -> str | None:
    """Admin role stored by the provider under ``app_metadata.role``."""
    app_metadata = payload.get("app_metadata") or {}
    return app_metadata.get("role")
