# app/models/tenant_specific/event.py
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Uuid, Index
from ..base import Base


class Event(Base):
    __tablename__ = "events"

    org_id = Column(Uuid(as_uuid=True), ForeignKey("orgs.id"), nullable=False, index=True)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id"), nullable=True, index=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    start_at = Column(DateTime(timezone=True), nullable=False)
    end_at = Column(DateTime(timezone=True), nullable=True)
    location = Column(String(500), nullable=True)

    __table_args__ = (
        Index("idx_event_org_start", "org_id", "start_at"),
    )
