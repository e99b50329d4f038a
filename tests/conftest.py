"""Shared fixtures: a throwaway SQLite database per test and an HTTP client."""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_URL"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["LOG_LEVEL"] = "warning"

from datetime import date
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.database import get_db, get_session_factory
from app.core.security import create_access_token
from app.main import app
from app.models import (
    Base, ClassMembership, ClassModel, GuardianStudent, Org, Student, User
)
from app.services.chat.websocket_manager import websocket_manager
from app.services.user_service import default_password_hash


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    yield factory
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_websocket_manager():
    yield
    websocket_manager.active_connections.clear()
    websocket_manager.thread_subscriptions.clear()
    websocket_manager._seen_message_ids.clear()


class Factory:
    """Seeds rows directly through a session."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._n = 0

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        return obj

    async def org(self, name: str = "Sunny Hill") -> Org:
        self._n += 1
        return await self._save(Org(name=name, slug=f"{name.lower().replace(' ', '-')}-{self._n}"))

    async def user(self, role: str, org: Optional[Org], first_name: Optional[str] = None,
                   last_name: str = "Tester", email: Optional[str] = None, **fields) -> User:
        self._n += 1
        first_name = first_name or f"{role.title()}{self._n}"
        return await self._save(User(
            org_id=org.id if org else None,
            role=role,
            first_name=first_name,
            last_name=last_name,
            email=email or f"{role}{self._n}@example.com",
            password_hash=fields.pop("password_hash", default_password_hash()),
            is_active=fields.pop("is_active", True),
            **fields
        ))

    async def school_class(self, org: Org, name: str = "Blue", teacher: Optional[User] = None) -> ClassModel:
        class_obj = await self._save(ClassModel(org_id=org.id, name=name))
        if teacher:
            await self._save(ClassMembership(class_id=class_obj.id, user_id=teacher.id, membership_role="teacher"))
        return class_obj

    async def student(self, org: Org, school_class: Optional[ClassModel] = None,
                      guardian: Optional[User] = None, first_name: str = "Kid") -> Student:
        user = await self.user("student", org, first_name=first_name, dob=date(2019, 5, 1))
        student = await self._save(Student(
            user_id=user.id,
            org_id=org.id,
            class_id=school_class.id if school_class else None,
            barngildi=1.0,
            student_language="english"
        ))
        if guardian:
            await self._save(GuardianStudent(guardian_id=guardian.id, student_id=student.id,
                                             org_id=org.id, relation="parent"))
        return student


@pytest.fixture
def factory(db):
    return Factory(db)


def auth_headers(user: User) -> dict:
    token = create_access_token(str(user.id), user.role, str(user.org_id) if user.org_id else None)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    return auth_headers


@pytest.fixture
async def org(factory):
    return await factory.org()


@pytest.fixture
async def principal(factory, org):
    return await factory.user("principal", org, first_name="Paula")


@pytest.fixture
async def teacher(factory, org):
    return await factory.user("teacher", org, first_name="Tom")


@pytest.fixture
async def guardian(factory, org):
    return await factory.user("guardian", org, first_name="Gina")
