import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from neorelis.core.security import check_password, hash_password
from neorelis.models.user import User


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def find_user_by_email_or_username(
    db: Session, email: Optional[str] = None, username: Optional[str] = None
) -> Optional[User]:
    """The email owner wins when email and username belong to different users."""
    if email:
        user = find_user_by_email(db, email)
        if user:
            return user
    if username:
        return db.query(User).filter(User.username == username).first()
    return None


def create_user(db: Session, email: str, username: str, name: str, password: str) -> User:
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        username=username,
        name=name,
        hashed_password=hash_password(password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate(
    db: Session, password: str, email: Optional[str] = None, username: Optional[str] = None
) -> Optional[User]:
    """Return the user if the credentials match, else None."""
    user = find_user_by_email_or_username(db, email=email, username=username)
    if not user or not check_password(password, user.hashed_password):
        return None
    return user


def mark_email_verified(db: Session, user: User) -> User:
    user.email_verified_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user
