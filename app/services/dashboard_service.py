# app/services/dashboard_service.py
import asyncio
from typing import Any, Dict
from uuid import UUID
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import async_sessionmaker
import logging

from ..core.cache import cache
from ..core.config import settings
from ..models.chat.message_thread import MessageThread, MessageParticipant
from ..models.shared.user import User, STAFF_ROLES
from ..models.tenant_specific.class_model import ClassModel
from ..models.tenant_specific.student import Student, GuardianStudent
from .access_service import assigned_classes_query

logger = logging.getLogger(__name__)


class DashboardService:
    """Dashboard counts; each count runs in its own session."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def _count(self, stmt) -> int:
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar() or 0

    async def _gather(self, label: str, queries: Dict[str, Any]) -> Dict[str, int]:
        """Run the counts concurrently; a failed count logs and reads as 0."""
        results = await asyncio.gather(
            *(self._count(stmt) for stmt in queries.values()),
            return_exceptions=True
        )
        metrics = {}
        for name, value in zip(queries, results):
            if isinstance(value, Exception):
                logger.error(f"Dashboard count '{name}' failed for {label}: {value}")
                value = 0
            metrics[name] = value
        return metrics

    async def principal_metrics(self, org_id: UUID) -> Dict[str, Any]:
        cache_key = cache.make_key("dashboard", org_id, "principal")
        cached = await cache.get(cache_key)
        if cached is not None:
            return cached

        metrics = await self._gather(f"org {org_id}", {
            "students": select(func.count()).select_from(Student).where(
                Student.org_id == org_id, Student.is_deleted == False
            ),
            "staff": select(func.count()).select_from(User).where(
                User.org_id == org_id,
                User.role.in_(list(STAFF_ROLES)),
                User.is_active == True,
                User.is_deleted == False
            ),
            "classes": select(func.count()).select_from(ClassModel).where(
                ClassModel.org_id == org_id, ClassModel.is_deleted == False
            ),
        })

        await cache.set(cache_key, metrics, expire=settings.cache_ttl_seconds)
        return metrics

    async def teacher_metrics(self, org_id: UUID, teacher_id: UUID) -> Dict[str, int]:
        """Classes the teacher is assigned to and the students in them."""
        assigned = assigned_classes_query(teacher_id, org_id)
        return await self._gather(f"teacher {teacher_id}", {
            "classes": select(func.count()).select_from(assigned.subquery()),
            "students": select(func.count()).select_from(Student).where(
                Student.org_id == org_id,
                Student.is_deleted == False,
                Student.class_id.in_(assigned)
            ),
        })

    async def guardian_metrics(self, org_id: UUID, guardian_id: UUID) -> Dict[str, int]:
        """Linked children and threads with unread messages."""
        return await self._gather(f"guardian {guardian_id}", {
            "linked_students": select(func.count()).select_from(GuardianStudent)
            .join(Student, Student.id == GuardianStudent.student_id)
            .where(
                GuardianStudent.guardian_id == guardian_id,
                GuardianStudent.org_id == org_id,
                Student.is_deleted == False
            ),
            "unread_threads": select(func.count()).select_from(MessageParticipant)
            .join(MessageThread, MessageThread.id == MessageParticipant.message_id)
            .where(
                MessageParticipant.user_id == guardian_id,
                MessageParticipant.unread == True,
                MessageThread.org_id == org_id,
                MessageThread.is_deleted == False
            ),
        })
