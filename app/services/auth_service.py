# app/services/auth_service.py
from typing import Any, Dict
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..core.exceptions import AuthenticationError
from ..core.security import create_access_token, verify_password
from ..models.shared.user import User
from .user_service import user_detail

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.lower(), User.is_deleted == False)
        )
        user = result.scalar_one_or_none()
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login for {email}")
            raise AuthenticationError("Invalid email or password")

        token = create_access_token(
            str(user.id),
            user.role,
            str(user.org_id) if user.org_id else None
        )
        logger.info(f"User {user.id} logged in")
        return {"access_token": token, "token_type": "bearer", "user": user_detail(user, redact=True)}
