from sqlalchemy import Column, String, DateTime, ForeignKey

from neorelis.core.database import Base


class EmailVerificationCode(Base):
    """Outstanding email verification code; at most one row per user."""

    __tablename__ = "email_verification_codes"

    id = Column(String(36), primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    code_hash = Column(String(64), nullable=False)  # sha256 hex, never the code itself
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
