"""Auth request/response schemas."""

from pydantic import BaseModel, EmailStr, Field


# ── Login ──────────────────────────────────────────
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    refresh_token: str | None = None
    user_id: str
    email: str


# ── Register ───────────────────────────────────────
class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    redirect_to: str | None = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    confirmation_sent: bool
    message: str = "Registration received"


# ── Forgot password ────────────────────────────────
class ForgotPasswordRequest(BaseModel):
    email: EmailStr
    redirect_to: str | None = None


class MessageResponse(BaseModel):
    message: str


# ── Current Admin ──────────────────────────────────
class CurrentAdmin(BaseModel):
    id: str
    email: str
    role: str
    permissions: list[str]
