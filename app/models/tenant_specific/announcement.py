# app/models/tenant_specific/announcement.py
from sqlalchemy import Column, String, Text, Date, Boolean, ForeignKey, Uuid
from ..base import Base


class Announcement(Base):
    __tablename__ = "announcements"

    org_id = Column(Uuid(as_uuid=True), ForeignKey("orgs.id"), nullable=False, index=True)
    # NULL class_id means the announcement is org-wide
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id"), nullable=True, index=True)
    author_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)
    week_start = Column(Date, nullable=True)
    is_public = Column(Boolean, default=True, nullable=False)
