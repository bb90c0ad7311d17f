from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from neorelis.core.database import SessionLocal
from neorelis.services.email import MailSink
from neorelis.services.verification import (
    SqlAlchemyVerificationCodeStore,
    VerificationCodeManager,
)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_mail_sink(request: Request) -> MailSink:
    """Mail sink built once in main and attached to app.state."""
    return request.app.state.mail_sink


def get_verification_manager(
    db: Session = Depends(get_db),
    mail_sink: MailSink = Depends(get_mail_sink),
) -> VerificationCodeManager:
    return VerificationCodeManager(SqlAlchemyVerificationCodeStore(db), mail_sink)
