from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, JSON
from sqlalchemy.sql import func

from neorelis.core.database import Base


class ProtocolDraft(Base):
    __tablename__ = "protocol_drafts"

    # Client-generated uuid so one PUT endpoint covers create and update
    id = Column(String(36), primary_key=True, index=True)
    creator_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False, default="Untitled Draft")
    current_step = Column(Integer, nullable=False, default=0)
    form_data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
