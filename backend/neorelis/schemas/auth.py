from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    username: str = Field(min_length=3, max_length=20)
    name: str = Field(min_length=1, max_length=50)


class LoginRequest(BaseModel):
    email: Optional[EmailStr] = None
    username: Optional[str] = None
    password: str

    @model_validator(mode="after")
    def email_or_username(self) -> "LoginRequest":
        if not self.email and not self.username:
            raise ValueError("Either email or username is required")
        return self


class VerifyEmailRequest(BaseModel):
    email: EmailStr
    code: str = Field(pattern=r"^\d{6}$", description="6-digit code from the verification email")


class ResendVerificationRequest(BaseModel):
    email: EmailStr


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    name: str


class AuthResponse(BaseModel):
    message: str
    access_token: str
    token_type: str = "bearer"
    user: UserPublic


class VerificationRequiredResponse(BaseModel):
    message: str
    requires_email_verification: bool = True
    email: str
    code_expires_in_minutes: int


class MessageResponse(BaseModel):
    message: str
    code_expires_in_minutes: Optional[int] = None


class MeResponse(BaseModel):
    user: UserPublic
