# app/models/chat/message_thread.py
from sqlalchemy import Column, String, Boolean, ForeignKey, Uuid, Index, UniqueConstraint
from ..base import Base

THREAD_TYPES = ("dm", "class", "announcement")


class MessageThread(Base):
    __tablename__ = "message_threads"

    org_id = Column(Uuid(as_uuid=True), ForeignKey("orgs.id"), nullable=False, index=True)
    thread_type = Column(String(20), default="dm", nullable=False)
    subject = Column(String(500), nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)


class MessageParticipant(Base):
    __tablename__ = "message_participants"

    message_id = Column(Uuid(as_uuid=True), ForeignKey("message_threads.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    org_id = Column(Uuid(as_uuid=True), ForeignKey("orgs.id"), nullable=False)
    role = Column(String(20), nullable=True)
    unread = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_message_participant"),
        Index("idx_participant_user_unread", "user_id", "unread"),
    )
