"""Login endpoint: email + PRN check against the seeded user table."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import create_access_token
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.canteen_service.schemas import LoginRequest, LoginResponse, UserPublic
from services.canteen_service.services.identity import authenticate
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Log a student or the owner in and issue a bearer token."""
    user, role = await authenticate(db, request.email, request.password)
    token = create_access_token(user_id=str(user.id), email=user.email, role=role.value)
    logger.info("User %s logged in as %s", user.id, role.value)
    return LoginResponse(user=UserPublic.from_user(user, role), access_token=token)
