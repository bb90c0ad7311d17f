"""Protocol drafts: save & resume of the project creation wizard."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from neorelis.core.database import dialect_insert
from neorelis.models.protocol_draft import ProtocolDraft

DEFAULT_DRAFT_NAME = "Untitled Draft"


def list_drafts(db: Session, user_id: str) -> List[ProtocolDraft]:
    """All drafts of a user, most recently updated first."""
    return (
        db.query(ProtocolDraft)
        .filter(ProtocolDraft.creator_id == user_id)
        .order_by(ProtocolDraft.updated_at.desc())
        .all()
    )


def get_draft(db: Session, draft_id: str, user_id: str) -> Optional[ProtocolDraft]:
    return (
        db.query(ProtocolDraft)
        .filter(ProtocolDraft.id == draft_id, ProtocolDraft.creator_id == user_id)
        .first()
    )


def save_draft(
    db: Session,
    draft_id: str,
    user_id: str,
    name: Optional[str],
    current_step: int,
    form_data: Dict[str, Any],
) -> Optional[ProtocolDraft]:
    """
    Create or update a draft in one statement.

    The update branch only applies to rows owned by user_id, so a draft id that
    belongs to someone else is left untouched and None is returned.
    """
    name = (name or "").strip() or DEFAULT_DRAFT_NAME
    now = datetime.now(timezone.utc)
    stmt = dialect_insert(db, ProtocolDraft).values(
        id=draft_id,
        creator_id=user_id,
        name=name,
        current_step=current_step,
        form_data=form_data,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["id"],
        set_={
            "name": stmt.excluded.name,
            "current_step": stmt.excluded.current_step,
            "form_data": stmt.excluded.form_data,
            "updated_at": stmt.excluded.updated_at,
        },
        where=ProtocolDraft.__table__.c.creator_id == user_id,
    )
    db.execute(stmt)
    db.commit()
    return get_draft(db, draft_id, user_id)


def delete_draft(db: Session, draft_id: str, user_id: str) -> bool:
    draft = get_draft(db, draft_id, user_id)
    if not draft:
        return False
    db.delete(draft)
    db.commit()
    return True
