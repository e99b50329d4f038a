# app/routers/auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import get_current_user
from ..core.database import get_db
from ..models.shared.user import User
from ..schemas.auth_schemas import LoginRequest
from ..services.auth_service import AuthService
from ..services.user_service import user_detail

router = APIRouter(prefix="/api/auth", tags=["Auth"])

@router.post("/login")
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Exchange email and password for a bearer token"""
    return await AuthService(db).login(payload.email, payload.password)

@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return {"user": user_detail(current_user, redact=True)}
