# app/models/tenant_specific/student.py
from sqlalchemy import Column, String, Date, Numeric, Text, ForeignKey, Uuid, UniqueConstraint
from ..base import Base


class Student(Base):
    __tablename__ = "students"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    org_id = Column(Uuid(as_uuid=True), ForeignKey("orgs.id"), nullable=False, index=True)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id"), nullable=True, index=True)

    start_date = Column(Date, nullable=True)
    student_language = Column(String(20), default="english", nullable=False)
    barngildi = Column(Numeric(2, 1, asdecimal=False), default=0.5, nullable=False)

    medical_notes = Column(Text, nullable=True)
    allergies = Column(Text, nullable=True)
    emergency_contact = Column(Text, nullable=True)


class GuardianStudent(Base):
    __tablename__ = "guardian_students"

    guardian_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    org_id = Column(Uuid(as_uuid=True), ForeignKey("orgs.id"), nullable=False, index=True)
    relation = Column(String(20), default="parent", nullable=False)

    __table_args__ = (
        UniqueConstraint("guardian_id", "student_id", name="uq_guardian_student"),
    )
