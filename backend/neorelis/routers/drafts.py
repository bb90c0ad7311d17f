from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session

from neorelis.core.auth import get_current_user
from neorelis.core.deps import get_db
from neorelis.models.notification import NotificationType
from neorelis.models.user import User
from neorelis.schemas.auth import MessageResponse
from neorelis.schemas.draft import DraftDetail, DraftListResponse, DraftResponse, DraftSave, DraftSummary
from neorelis.services import drafts as draft_service
from neorelis.services.notifications import notify_best_effort

router = APIRouter()

# draft ids are client-generated uuids kept in a String(36) column
DRAFT_ID_MAX_LENGTH = 36


@router.get("", response_model=DraftListResponse)
def list_drafts(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    drafts = draft_service.list_drafts(db, user.id)
    return DraftListResponse(drafts=[DraftSummary.model_validate(d) for d in drafts])


@router.get("/{draft_id}", response_model=DraftResponse)
def get_draft(
    draft_id: str = Path(..., max_length=DRAFT_ID_MAX_LENGTH),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    draft = draft_service.get_draft(db, draft_id, user.id)
    if not draft:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Draft not found")
    return DraftResponse(draft=DraftDetail.model_validate(draft))


@router.put("/{draft_id}", response_model=DraftResponse)
def save_draft(
    data: DraftSave,
    draft_id: str = Path(..., max_length=DRAFT_ID_MAX_LENGTH),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create or update a draft. The client generates the id for new drafts."""
    draft = draft_service.save_draft(
        db,
        draft_id,
        user.id,
        name=data.name,
        current_step=data.current_step,
        form_data=data.form_data,
    )
    if not draft:
        # id taken by another user's draft
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Draft not found")

    notify_best_effort(
        db,
        user.id,
        NotificationType.DRAFT_SAVED,
        title="Draft saved",
        message=f'Your draft "{draft.name}" has been saved',
        data={"draft_id": draft.id},
    )
    return DraftResponse(draft=DraftDetail.model_validate(draft))


@router.delete("/{draft_id}", response_model=MessageResponse)
def delete_draft(
    draft_id: str = Path(..., max_length=DRAFT_ID_MAX_LENGTH),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not draft_service.delete_draft(db, draft_id, user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Draft not found")
    return MessageResponse(message="Draft deleted")
