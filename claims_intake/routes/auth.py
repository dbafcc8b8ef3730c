"""Registration, verification, login and federated login routes.

Login endpoints are rate limited per client address; the limit comes from
``Settings.login_rate_limit`` (``LOGIN_RATE_LIMIT``, default 10/minute).
"""

from typing import Annotated

from fastapi import APIRouter, Request
from pydantic import AfterValidator, BaseModel, Field, field_validator

from ..auth import AuthService
from ..rate_limit import limiter, login_rate_limit
from ..utils import format_phone_number

router = APIRouter(prefix="/auth", tags=["auth"])


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    local, sep, domain = value.partition("@")
    if not local or not sep or "." not in domain:
        raise ValueError("Invalid email address")
    return value


Email = Annotated[str, AfterValidator(_normalize_email), Field(max_length=255)]


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Email
    password: str = Field(min_length=8, max_length=256)
    phone_number: str | None = None

    @field_validator("phone_number")
    @classmethod
    def normalize_phone(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return format_phone_number(v.strip())


class RegisterResponse(BaseModel):
    user_id: int
    activated: bool


class VerifyRequest(BaseModel):
    email: Email
    code: str = Field(min_length=6, max_length=6)


class LoginRequest(BaseModel):
    email: Email
    password: str


class FederatedLoginRequest(BaseModel):
    provider: str = Field(min_length=1, max_length=64)
    access_token: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


def _service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def _token_response(request: Request, token: str) -> TokenResponse:
    return TokenResponse(
        access_token=token,
        expires_in=request.app.state.token_signer.ttl_seconds,
    )


@router.post("/register", response_model=RegisterResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> RegisterResponse:
    """Register a user; the account stays inactive until verified."""
    user_id = _service(request).register(
        name=body.name,
        email=body.email,
        password=body.password,
        phone_number=body.phone_number,
        ip_address=_client_ip(request),
    )
    return RegisterResponse(user_id=user_id, activated=False)


@router.post("/verify")
def verify(request: Request, body: VerifyRequest) -> dict[str, bool]:
    """Activate an account with its verification code."""
    _service(request).verify(body.email, body.code, ip_address=_client_ip(request))
    return {"activated": True}


@router.post("/login", response_model=TokenResponse)
@limiter.limit(login_rate_limit)
def login(request: Request, body: LoginRequest) -> TokenResponse:
    token = _service(request).login(body.email, body.password, ip_address=_client_ip(request))
    return _token_response(request, token)


@router.post("/federated", response_model=TokenResponse)
@limiter.limit(login_rate_limit)
def federated_login(request: Request, body: FederatedLoginRequest) -> TokenResponse:
    """Sign in with a third-party identity provider access token."""
    token = _service(request).federated_login(
        body.provider, body.access_token, ip_address=_client_ip(request)
    )
    return _token_response(request, token)
