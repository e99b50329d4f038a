# app/services/principal_service.py
from typing import Any, Dict, Optional
from uuid import UUID
from sqlalchemy import select
import logging

from ..core.exceptions import BadRequestError, ForbiddenError, MissingOrgError, NotFoundError
from ..models.shared.org import Org
from ..models.shared.user import User, UserRole
from ..schemas.principal_schemas import PrincipalCreate, PrincipalUpdate, UserOut
from ..utils.pagination import Paginator
from .user_service import UserService

logger = logging.getLogger(__name__)

PRINCIPAL = UserRole.PRINCIPAL.value


def serialize_principal(user: User) -> Dict[str, Any]:
    return UserOut.model_validate(user).model_dump(mode="json")


class PrincipalService(UserService):

    async def _visible(self, caller: User, principal_id: UUID) -> User:
        user = await self.get(principal_id)
        if not user or user.role != PRINCIPAL:
            raise NotFoundError("Principal")
        if caller.role != UserRole.ADMIN.value and user.org_id != caller.org_id:
            raise ForbiddenError()
        return user

    async def list_principals(self, caller: User, org_id: Optional[UUID], page: int, size: int) -> Dict[str, Any]:
        if caller.role != UserRole.ADMIN.value:
            if not caller.org_id:
                raise MissingOrgError()
            org_id = caller.org_id
        page_data = await self.get_paginated(
            page=page, size=size, org_id=org_id,
            order_by="created_at", sort="desc", role=PRINCIPAL
        )
        items = [serialize_principal(u) for u in page_data["items"]]
        return Paginator.create_response(items, page, size, page_data["total"])

    async def get_principal(self, caller: User, principal_id: UUID) -> Dict[str, Any]:
        return serialize_principal(await self._visible(caller, principal_id))

    async def create_principal(self, data: PrincipalCreate) -> Dict[str, Any]:
        org = (await self.db.execute(select(Org).where(Org.id == data.org_id, Org.is_deleted == False))).scalar_one_or_none()
        if not org:
            raise BadRequestError("Organization not found")
        await self.ensure_email_free(data.email)
        user = self.build_user(
            org.id, PRINCIPAL,
            **data.model_dump(include={"first_name", "last_name", "email", "phone"})
        )
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"Principal {user.id} created for org {org.id}")
        return serialize_principal(user)

    async def update_principal(self, caller: User, data: PrincipalUpdate) -> Dict[str, Any]:
        user = await self._visible(caller, data.id)
        changes = data.model_dump(exclude_unset=True, exclude={"id"})
        if changes.get("email"):
            await self.ensure_email_free(changes["email"], exclude_id=user.id)
            changes["email"] = changes["email"].lower()
        return serialize_principal(await self.update(user, changes))

    async def delete_principal(self, caller: User, principal_id: UUID) -> Optional[UUID]:
        """Soft-deletes the principal; returns their org id."""
        user = await self._visible(caller, principal_id)
        user.is_active = False
        await self.soft_delete(user)
        return user.org_id
