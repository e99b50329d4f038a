# app/routers/dashboard.py
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..core.auth import require_roles
from ..core.database import get_session_factory
from ..models.shared.user import User
from ..services.dashboard_service import DashboardService
from ..utils.cache_headers import no_cache_headers, realtime_headers

router = APIRouter(prefix="/api", tags=["Dashboard"])

@router.get("/principal-dashboard-metrics")
async def principal_dashboard_metrics(
    response: Response,
    current_user: User = Depends(require_roles("principal", "admin")),
    session_factory: async_sessionmaker = Depends(get_session_factory)
):
    """Student, staff and class counts for the caller's org"""
    response.headers.update(realtime_headers())
    return await DashboardService(session_factory).principal_metrics(current_user.org_id)

@router.get("/teacher-dashboard-metrics")
async def teacher_dashboard_metrics(
    response: Response,
    current_user: User = Depends(require_roles("teacher", "principal", "admin")),
    session_factory: async_sessionmaker = Depends(get_session_factory)
):
    """Classes the caller teaches and the students in them"""
    response.headers.update(no_cache_headers())
    return await DashboardService(session_factory).teacher_metrics(current_user.org_id, current_user.id)

@router.get("/guardian-dashboard-metrics")
async def guardian_dashboard_metrics(
    response: Response,
    current_user: User = Depends(require_roles("guardian")),
    session_factory: async_sessionmaker = Depends(get_session_factory)
):
    response.headers.update(no_cache_headers())
    return await DashboardService(session_factory).guardian_metrics(current_user.org_id, current_user.id)
