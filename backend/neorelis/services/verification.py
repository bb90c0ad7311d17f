"""
Email verification codes.

One outstanding code per user. Only the SHA-256 of the code is stored; the
plaintext goes out by email and nowhere else. Issuing again replaces the
previous code in place.
"""

import enum
import hashlib
import hmac
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

from pydantic import BaseModel
from sqlalchemy.orm import Session

from neorelis.core.database import dialect_insert
from neorelis.models.verification_code import EmailVerificationCode
from neorelis.services.email import MailSink, build_verification_code_email

logger = logging.getLogger(__name__)

EMAIL_VERIFICATION_EXPIRE_MINUTES = 30
VERIFICATION_CODE_DIGITS = 6


class VerificationOutcome(str, enum.Enum):
    VALID = "VALID"
    NOT_FOUND = "NOT_FOUND"
    EXPIRED = "EXPIRED"
    INVALID = "INVALID"


class IssuedCode(BaseModel):
    expires_at: datetime


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def generate_verification_code() -> str:
    """Uniform 6-digit code from the OS CSPRNG, zero padded ("000452")."""
    return f"{secrets.randbelow(10 ** VERIFICATION_CODE_DIGITS):0{VERIFICATION_CODE_DIGITS}d}"


def hash_verification_code(code: str) -> str:
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


class VerificationCodeStore(Protocol):
    def find_one(self, user_id: str) -> Optional[EmailVerificationCode]:
        ...

    def upsert(self, user_id: str, code_hash: str, expires_at: datetime, created_at: datetime) -> None:
        ...

    def delete_all(self, user_id: str) -> None:
        ...


class SqlAlchemyVerificationCodeStore:
    """Verification code rows keyed by the unique user_id column."""

    def __init__(self, db: Session):
        self.db = db

    def find_one(self, user_id: str) -> Optional[EmailVerificationCode]:
        return (
            self.db.query(EmailVerificationCode)
            .filter(EmailVerificationCode.user_id == user_id)
            .first()
        )

    def upsert(self, user_id: str, code_hash: str, expires_at: datetime, created_at: datetime) -> None:
        # Single INSERT .. ON CONFLICT statement: concurrent reissues are last-write-wins
        stmt = dialect_insert(self.db, EmailVerificationCode).values(
            id=str(uuid.uuid4()),
            user_id=user_id,
            code_hash=code_hash,
            expires_at=expires_at,
            created_at=created_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id"],
            set_={
                "code_hash": stmt.excluded.code_hash,
                "expires_at": stmt.excluded.expires_at,
                "created_at": stmt.excluded.created_at,
            },
        )
        self.db.execute(stmt)
        self.db.commit()

    def delete_all(self, user_id: str) -> None:
        self.db.query(EmailVerificationCode).filter(
            EmailVerificationCode.user_id == user_id
        ).delete(synchronize_session=False)
        self.db.commit()


class VerificationCodeManager:
    """
    Issue, verify and consume email verification codes.

    verify() never mutates: wrong or expired attempts leave the record as is,
    and a VALID result must be followed by consume() once the caller has
    marked the account verified.
    """

    def __init__(
        self,
        store: VerificationCodeStore,
        mail_sink: MailSink,
        clock: Callable[[], datetime] = utcnow,
        expire_minutes: int = EMAIL_VERIFICATION_EXPIRE_MINUTES,
    ):
        self._store = store
        self._mail_sink = mail_sink
        self._clock = clock
        self.expire_minutes = expire_minutes

    def issue(self, user_id: str, email: str) -> IssuedCode:
        code = generate_verification_code()
        now = self._clock()
        expires_at = now + timedelta(minutes=self.expire_minutes)

        self._store.upsert(user_id, hash_verification_code(code), expires_at, now)

        try:
            self._mail_sink.send(build_verification_code_email(email, code, self.expire_minutes))
        except Exception:
            # No valid code may outlive a failed delivery
            logger.warning("Verification email for user %s failed; dropping the code", user_id)
            self._store.delete_all(user_id)
            raise

        logger.info("Verification code issued for user %s (expires %s)", user_id, expires_at.isoformat())
        return IssuedCode(expires_at=expires_at)

    def verify(self, user_id: str, code: str) -> VerificationOutcome:
        record = self._store.find_one(user_id)
        if record is None:
            return VerificationOutcome.NOT_FOUND
        if _as_utc(record.expires_at) < self._clock():
            return VerificationOutcome.EXPIRED
        if not hmac.compare_digest(record.code_hash, hash_verification_code(code)):
            return VerificationOutcome.INVALID
        return VerificationOutcome.VALID

    def consume(self, user_id: str) -> None:
        self._store.delete_all(user_id)
