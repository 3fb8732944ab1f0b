"""Auth request/response schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


# ── Login ──────────────────────────────────────────
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: UUID
    kind: str
    role: str
    landing_view: str


# ── Client self-registration ───────────────────────
class ClientRegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    company: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=8)


class ClientRegisterResponse(BaseModel):
    customer_id: UUID
    account_status: str
    message: str = "Application submitted. Please wait for authorization."


# ── Current User ───────────────────────────────────
class CurrentUser(BaseModel):
    id: UUID
    email: str
    name: str
    kind: str  # "staff" | "client"
    role: str
    permissions: list[str]
    is_active: bool

    @property
    def is_client(self) -> bool:
        return self.kind == "client"


class MeResponse(CurrentUser):
    company: str | None = None
    avatar_url: str | None = None
    landing_view: str


class ProfileUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    password: str | None = Field(None, min_length=8)
    avatar_url: str | None = Field(None, max_length=500)
