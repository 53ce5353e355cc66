"""Auth-related schemas (confirmation, login, password reset)."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from accountauth.core.sanitize import clean_code, clean_email
from accountauth.schemas.user import MAX_PASSWORD_LEN, MIN_PASSWORD_LEN, check_password_text

MAX_TOKEN_LEN = 32


class MessageResponse(BaseModel):
    message: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenRequest(BaseModel):
    token: str = Field(min_length=1, max_length=MAX_TOKEN_LEN)

    @field_validator("token", mode="before")
    @classmethod
    def normalize_token(cls, value: str) -> str:
        return clean_code(value)


class EmailRequest(BaseModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)


class NewPasswordRequest(BaseModel):
    password: str = Field(min_length=MIN_PASSWORD_LEN, max_length=MAX_PASSWORD_LEN)
    password_confirmation: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_text(value)

    @model_validator(mode="after")
    def passwords_match(self) -> "NewPasswordRequest":
        if self.password != self.password_confirmation:
            raise ValueError("passwords_do_not_match")
        return self
