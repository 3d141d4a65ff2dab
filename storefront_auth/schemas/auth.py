"""Pydantic schemas for authentication endpoints."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(CamelModel):
    email: str | None = None
    password: str | None = None


class RegisterRequest(CamelModel):
    email: str | None = None
    password: str | None = None
    first_name: str | None = Field(None, alias="firstName")
    last_name: str | None = Field(None, alias="lastName")


class ProfileUpdateRequest(CamelModel):
    first_name: str | None = Field(None, alias="firstName")
    last_name: str | None = Field(None, alias="lastName")


class ChangePasswordRequest(CamelModel):
    current_password: str | None = Field(None, alias="currentPassword")
    new_password: str | None = Field(None, alias="newPassword")


class ForgotPasswordRequest(CamelModel):
    email: str | None = None


class ResetPasswordRequest(CamelModel):
    token: str | None = None
    new_password: str | None = Field(None, alias="newPassword")


class UserResponse(BaseModel):
    """Account summary for register and login. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str = Field(validation_alias=AliasChoices("first_name", "firstName"), serialization_alias="firstName")
    last_name: str = Field(validation_alias=AliasChoices("last_name", "lastName"), serialization_alias="lastName")
    email_verified: bool = Field(
        validation_alias=AliasChoices("email_verified", "emailVerified"), serialization_alias="emailVerified"
    )
    created_at: datetime = Field(validation_alias=AliasChoices("created_at", "createdAt"), serialization_alias="createdAt")


class AccountProfile(BaseModel):
    """Profile as returned by /me, with the stored column names."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str
    last_name: str
    email_verified: bool
    created_at: datetime


class TokenResponse(BaseModel):
    message: str
    token: str
    user: UserResponse


class ProfileResponse(BaseModel):
    user: AccountProfile


class ProfileUpdateResponse(BaseModel):
    message: str
    user: AccountProfile


class MessageResponse(BaseModel):
    message: str
