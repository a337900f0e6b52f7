"""Authentication endpoints: thin wrappers over the hosted auth provider."""

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.deps import get_current_admin
from app.core.exceptions import AuthProviderError
from app.schemas.auth import (
    LoginRequest,
    TokenResponse,
    RegisterRequest,
    RegisterResponse,
    ForgotPasswordRequest,
    MessageResponse,
    CurrentAdmin,
)
from app.services.auth_provider import AuthProviderClient, get_auth_provider

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    provider: AuthProviderClient = Depends(get_auth_provider),
):
    """Exchange email + password for the provider's access token."""
    try:
        data = await provider.sign_in(body.email, body.password)
    except AuthProviderError as exc:
        if exc.upstream_status in (400, 401):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )
        raise exc.to_http()

    user = data.get("user") or {}
    return TokenResponse(
        access_token=data["access_token"],
        expires_in=data.get("expires_in"),
        refresh_token=data.get("refresh_token"),
        user_id=user.get("id", ""),
        email=user.get("email", body.email),
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    provider: AuthProviderClient = Depends(get_auth_provider),
):
    """Sign up a dashboard account; the provider sends the confirmation email."""
    try:
        data = await provider.sign_up(body.email, body.password, body.redirect_to)
    except AuthProviderError as exc:
        raise exc.to_http()

    # Provider returns the user either bare or wrapped with a session
    user = data.get("user") or data
    return RegisterResponse(
        user_id=user.get("id", ""),
        email=user.get("email", body.email),
        confirmation_sent=bool(user.get("confirmation_sent_at")),
    )


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    provider: AuthProviderClient = Depends(get_auth_provider),
):
    """Request a password reset email."""
    try:
        await provider.recover(body.email, body.redirect_to)
    except AuthProviderError as exc:
        raise exc.to_http()
    return MessageResponse(message="If the account exists, a reset link has been sent")


@router.get("/me", response_model=CurrentAdmin)
async def me(current_admin: CurrentAdmin = Depends(get_current_admin)):
    return current_admin
