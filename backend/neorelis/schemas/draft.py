from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DraftSave(BaseModel):
    name: Optional[str] = Field("Untitled Draft", max_length=200)
    current_step: int = Field(0, ge=0, le=5)
    form_data: Dict[str, Any]


class DraftSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    current_step: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DraftDetail(DraftSummary):
    form_data: Dict[str, Any]


class DraftListResponse(BaseModel):
    drafts: List[DraftSummary]


class DraftResponse(BaseModel):
    draft: DraftDetail
