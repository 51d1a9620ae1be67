from datetime import datetime, timezone
from typing import Optional

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.schemas import LoginRequest, LoginResponse, UserInfo
from app.auth.security import create_access_token, verify_password
from app.core.exceptions import ServiceError


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    # 1. Find user by NIP/NIS
    user_stmt = select(User).where(User.login_id == payload.login_id.strip())
    user_result = await db.execute(user_stmt)
    user: Optional[User] = user_result.scalar_one_or_none()
    if not user:
        raise ServiceError("Invalid NIP/NIS or password", status.HTTP_401_UNAUTHORIZED)

    # 2. Verify password hash
    if not verify_password(payload.password, user.password_hash):
        raise ServiceError("Invalid NIP/NIS or password", status.HTTP_401_UNAUTHORIZED)

    # 3. Check user status
    if not user.is_active:
        raise ServiceError("User is inactive", status.HTTP_403_FORBIDDEN)

    issued_at = datetime.now(timezone.utc)

    # 4. Signed token carries subject, role and display name
    access_token = create_access_token(subject={
        "sub": str(user.id),
        "role": user.role,
        "display_name": user.full_name,
        "iat": int(issued_at.timestamp()),
    })

    return LoginResponse(
        access_token=access_token,
        user=UserInfo(id=user.id, name=user.full_name, login_id=user.login_id, role=user.role),
        issued_at=issued_at,
    )
