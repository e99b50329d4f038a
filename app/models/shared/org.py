# app/models/shared/org.py
from sqlalchemy import Column, String
from ..base import Base


class Org(Base):
    __tablename__ = "orgs"

    name = Column(String(200), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    timezone = Column(String(64), default="UTC", nullable=False)
