import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from neorelis.core.auth import get_current_user
from neorelis.core.deps import get_db, get_verification_manager
from neorelis.core.security import create_user_token
from neorelis.models.user import User
from neorelis.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    ResendVerificationRequest,
    UserPublic,
    VerificationRequiredResponse,
    VerifyEmailRequest,
)
from neorelis.services import users as user_service
from neorelis.services.email import MailError
from neorelis.services.verification import VerificationCodeManager, VerificationOutcome

logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_CODE_DETAIL = "Invalid verification code"


def _issue_code(manager: VerificationCodeManager, user: User) -> None:
    """Issue a verification code; mail problems become a 503 for the client."""
    try:
        manager.issue(user.id, user.email)
    except MailError as e:
        logger.error("Could not send verification code to user %s: %s", user.id, e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to send verification email. Please try again later.",
        )


def _auth_response(user: User, message: str) -> AuthResponse:
    return AuthResponse(message=message, access_token=create_user_token(user), user=UserPublic.model_validate(user))


@router.post(
    "/register",
    response_model=VerificationRequiredResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    data: RegisterRequest,
    response: Response,
    db: Session = Depends(get_db),
    manager: VerificationCodeManager = Depends(get_verification_manager),
):
    """Create an account and email a verification code."""
    existing = user_service.find_user_by_email_or_username(db, email=data.email, username=data.username)
    if existing:
        if existing.email == data.email and not existing.is_email_verified:
            _issue_code(manager, existing)
            response.status_code = status.HTTP_200_OK
            return VerificationRequiredResponse(
                message="Account already exists and is not verified. A new verification code has been sent.",
                email=data.email,
                code_expires_in_minutes=manager.expire_minutes,
            )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered" if existing.email == data.email else "Username already taken",
        )

    user = user_service.create_user(
        db,
        email=data.email,
        username=data.username,
        name=data.name,
        password=data.password,
    )
    logger.info("Registered user %s", user.id)
    _issue_code(manager, user)
    return VerificationRequiredResponse(
        message="User registered successfully. Verification code sent to your email.",
        email=data.email,
        code_expires_in_minutes=manager.expire_minutes,
    )


@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Login with email or username; returns JWT access token."""
    user = user_service.authenticate(db, data.password, email=data.email, username=data.username)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )
    if not user.is_email_verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Please verify your email before logging in",
        )
    return _auth_response(user, "Login successful")


@router.post("/verify-email", response_model=AuthResponse)
def verify_email(
    data: VerifyEmailRequest,
    db: Session = Depends(get_db),
    manager: VerificationCodeManager = Depends(get_verification_manager),
):
    """Check the 6-digit code; on success mark the email verified and log the user in.

    Already verified accounts get a 409 and no token, whatever code is sent.
    """
    user = user_service.find_user_by_email(db, data.email)
    if not user:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_CODE_DETAIL)
    if user.is_email_verified:
        # no token here: a verified account logs in with its password
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already verified")

    outcome = manager.verify(user.id, data.code)
    if outcome == VerificationOutcome.EXPIRED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Verification code has expired. Please request a new code.",
        )
    if outcome != VerificationOutcome.VALID:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_CODE_DETAIL)

    manager.consume(user.id)
    user = user_service.mark_email_verified(db, user)
    logger.info("Email verified for user %s", user.id)
    return _auth_response(user, "Email verified successfully")


@router.post("/resend-verification-code", response_model=MessageResponse)
def resend_verification_code(
    data: ResendVerificationRequest,
    db: Session = Depends(get_db),
    manager: VerificationCodeManager = Depends(get_verification_manager),
):
    """Reissue a code. Unknown emails get the same answer so accounts cannot be probed."""
    user = user_service.find_user_by_email(db, data.email)
    if not user:
        return MessageResponse(
            message="If this account exists, a verification code has been sent.",
            code_expires_in_minutes=manager.expire_minutes,
        )
    if user.is_email_verified:
        return MessageResponse(message="Email is already verified.")

    _issue_code(manager, user)
    return MessageResponse(
        message="Verification code sent successfully.",
        code_expires_in_minutes=manager.expire_minutes,
    )


@router.post("/logout", response_model=MessageResponse)
def logout(user: User = Depends(get_current_user)):
    """Tokens are stateless; the client drops its copy."""
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return MeResponse(user=UserPublic.model_validate(user))
