# app/models/chat/message_item.py
from sqlalchemy import Column, Text, JSON, ForeignKey, Uuid, Index
from ..base import Base


class MessageItem(Base):
    __tablename__ = "message_items"

    message_id = Column(Uuid(as_uuid=True), ForeignKey("message_threads.id", ondelete="CASCADE"), nullable=False, index=True)
    org_id = Column(Uuid(as_uuid=True), ForeignKey("orgs.id"), nullable=False)
    author_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    body = Column(Text, nullable=False)

    # [{"body": previous, "edited_at": iso}]
    edit_history = Column(JSON, default=list, nullable=False)
    attachments = Column(JSON, default=list, nullable=False)

    __table_args__ = (
        Index('idx_message_item_thread_time', 'message_id', 'created_at'),
    )
