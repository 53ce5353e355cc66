"""Authentication endpoints (account creation, confirmation, login, password reset)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from accountauth.core.deps import get_auth_service, get_current_user
from accountauth.models.user import User
from accountauth.schemas.auth import EmailRequest, MessageResponse, NewPasswordRequest, TokenRequest, TokenResponse
from accountauth.schemas.user import UserCreate, UserLogin, UserOut
from accountauth.services.auth import AuthService

router = APIRouter()


@router.post("/create-account", response_model=MessageResponse)
def create_account(payload: UserCreate, service: AuthService = Depends(get_auth_service)) -> MessageResponse:
    message = service.register(payload.email, payload.password, payload.name)
    return MessageResponse(message=message)


@router.post("/confirm-account", response_model=MessageResponse)
def confirm_account(payload: TokenRequest, service: AuthService = Depends(get_auth_service)) -> MessageResponse:
    return MessageResponse(message=service.confirm(payload.token))


@router.post("/login", response_model=TokenResponse)
def login(payload: UserLogin, service: AuthService = Depends(get_auth_service)) -> TokenResponse:
    return TokenResponse(access_token=service.login(payload.email, payload.password))


@router.post("/request-code", response_model=MessageResponse)
def request_confirmation_code(
    payload: EmailRequest, service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    return MessageResponse(message=service.resend_confirmation(payload.email))


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(payload: EmailRequest, service: AuthService = Depends(get_auth_service)) -> MessageResponse:
    return MessageResponse(message=service.request_password_reset(payload.email))


@router.post("/validate-token", response_model=MessageResponse)
def validate_token(payload: TokenRequest, service: AuthService = Depends(get_auth_service)) -> MessageResponse:
    return MessageResponse(message=service.validate_reset_token(payload.token))


@router.post("/update-password/{token}", response_model=MessageResponse)
def update_password_with_token(
    payload: NewPasswordRequest,
    token: str = Path(pattern=r"^\d+$", max_length=32),
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    return MessageResponse(message=service.apply_password_reset(token, payload.password))


@router.get("/user", response_model=UserOut)
def current_user(user: User = Depends(get_current_user)) -> UserOut:
    return UserOut.model_validate(user)
