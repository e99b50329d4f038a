# app/models/tenant_specific/class_model.py
from sqlalchemy import Column, String, ForeignKey, Uuid, UniqueConstraint
from ..base import Base


class ClassModel(Base):
    __tablename__ = "classes"

    org_id = Column(Uuid(as_uuid=True), ForeignKey("orgs.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False, index=True)
    code = Column(String(50), nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


class ClassMembership(Base):
    __tablename__ = "class_memberships"

    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    membership_role = Column(String(20), default="teacher", nullable=False)

    __table_args__ = (
        UniqueConstraint("class_id", "user_id", name="uq_class_membership"),
    )
