"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from storefront_auth.database import get_db
from storefront_auth.dependencies import (
    clear_auth_cookie,
    get_auth_service,
    get_current_account,
    set_auth_cookie,
)
from storefront_auth.models.account import Account
from storefront_auth.schemas.auth import (
    AccountProfile,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserResponse,
)
from storefront_auth.services.auth import AuthService

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(
    body: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Create an account and start a session."""
    result = auth_service.register(db, body.email, body.password, body.first_name, body.last_name)
    set_auth_cookie(response, result.token)
    return TokenResponse(
        message="Account created successfully",
        token=result.token,
        user=UserResponse.model_validate(result.account),
    )


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Authenticate and receive a session token."""
    result = auth_service.authenticate(db, body.email, body.password)
    set_auth_cookie(response, result.token)
    return TokenResponse(
        message="Logged in successfully",
        token=result.token,
        user=UserResponse.model_validate(result.account),
    )


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response) -> MessageResponse:
    """Drop the session cookie. The token itself stays valid until it expires."""
    clear_auth_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=ProfileResponse)
def get_profile(account: Account = Depends(get_current_account)) -> ProfileResponse:
    return ProfileResponse(user=AccountProfile.model_validate(account))


@router.put("/me", response_model=ProfileUpdateResponse)
def update_profile(
    body: ProfileUpdateRequest,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> ProfileUpdateResponse:
    """Update first/last name."""
    account = auth_service.update_profile(db, account, body.first_name, body.last_name)
    return ProfileUpdateResponse(message="Profile updated", user=AccountProfile.model_validate(account))


@router.put("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    account: Account = Depends(get_current_account),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    auth_service.change_password(db, account, body.current_password, body.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    body: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Request a reset link. The response is the same whether or not the account exists."""
    return MessageResponse(message=auth_service.request_password_reset(db, body.email))


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Set a new password from a reset token. The user must log in afterwards."""
    auth_service.reset_password(db, body.token, body.new_password)
    return MessageResponse(message="Password reset successfully. You can now log in with your new password.")
