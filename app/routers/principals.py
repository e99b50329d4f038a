# app/routers/principals.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import require_roles
from ..core.database import get_db
from ..models.shared.user import User
from ..schemas.principal_schemas import PrincipalCreate, PrincipalUpdate
from ..services.principal_service import PrincipalService
from ..utils.cache_invalidation import invalidate_directory_cache
from ..utils.pagination import MAX_PAGE_SIZE

router = APIRouter(prefix="/api/principals", tags=["Principals"])

admins = require_roles("admin", require_org=False)

@router.get("")
async def get_principals(
    org_id: Optional[UUID] = Query(None, alias="orgId"),
    principal_id: Optional[UUID] = Query(None, alias="id"),
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(20, ge=1, le=MAX_PAGE_SIZE, alias="pageSize", description="Items per page"),
    current_user: User = Depends(require_roles("admin", "principal", require_org=False)),
    db: AsyncSession = Depends(get_db)
):
    """Paginated principals; principals only see their own org"""
    service = PrincipalService(db)
    if principal_id:
        return {"principal": await service.get_principal(current_user, principal_id)}
    return await service.list_principals(current_user, org_id, page, size)

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_principal(
    payload: PrincipalCreate,
    current_user: User = Depends(admins),
    db: AsyncSession = Depends(get_db)
):
    principal = await PrincipalService(db).create_principal(payload)
    await invalidate_directory_cache(principal["org_id"])
    return {"principal": principal}

@router.put("")
async def update_principal(
    payload: PrincipalUpdate,
    current_user: User = Depends(admins),
    db: AsyncSession = Depends(get_db)
):
    principal = await PrincipalService(db).update_principal(current_user, payload)
    await invalidate_directory_cache(principal["org_id"])
    return {"principal": principal}

@router.delete("")
async def delete_principal(
    principal_id: UUID = Query(..., alias="id"),
    current_user: User = Depends(admins),
    db: AsyncSession = Depends(get_db)
):
    org_id = await PrincipalService(db).delete_principal(current_user, principal_id)
    if org_id:
        await invalidate_directory_cache(org_id)
    return {"success": True, "message": "Principal deleted successfully"}
