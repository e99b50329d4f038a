# app/models/shared/user.py
import enum
from sqlalchemy import Column, String, Boolean, Date, ForeignKey, Uuid
from ..base import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    PRINCIPAL = "principal"
    TEACHER = "teacher"
    GUARDIAN = "guardian"
    STUDENT = "student"


STAFF_ROLES = {UserRole.PRINCIPAL.value, UserRole.TEACHER.value}


class User(Base):
    __tablename__ = "users"

    org_id = Column(Uuid(as_uuid=True), ForeignKey("orgs.id"), nullable=True, index=True)

    # students may have no login email
    email = Column(String(255), unique=True, nullable=True, index=True)
    password_hash = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, index=True)

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(30), nullable=True)
    ssn = Column(String(30), nullable=True)
    address = Column(String(500), nullable=True)
    gender = Column(String(10), nullable=True)
    dob = Column(Date, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p).strip()


class Staff(Base):
    __tablename__ = "staff"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    org_id = Column(Uuid(as_uuid=True), ForeignKey("orgs.id"), nullable=False, index=True)

    education_level = Column(String(100), nullable=True)
    union_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
