"""Shared dependencies for canteen routers."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from libs.auth.dependencies import get_current_user, get_optional_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.canteen_service.services.identity import (
    Caller,
    owner_caller_from_header,
    student_caller,
)
from services.canteen_service.services.order_lifecycle import OrderLifecycleService
from services.canteen_service.services.order_store import OrderStore
from sqlalchemy.ext.asyncio import AsyncSession

OWNER_HEADER = "X-Owner-Email"


def get_order_service(
    db: AsyncSession = Depends(get_async_db),
) -> OrderLifecycleService:
    """Build the lifecycle service around this request's session."""
    return OrderLifecycleService(OrderStore(db))


def get_owner_caller(
    owner_email: Optional[str] = Header(None, alias=OWNER_HEADER),
) -> Caller:
    return owner_caller_from_header(owner_email)


def _caller_from_token(current_user: AuthUser) -> Caller:
    try:
        user_id = int(current_user.user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return student_caller(user_id, current_user.email)


async def get_student_caller(
    current_user: AuthUser = Depends(get_current_user),
) -> Caller:
    return _caller_from_token(current_user)


async def get_optional_student_caller(
    current_user: Optional[AuthUser] = Depends(get_optional_user),
) -> Optional[Caller]:
    """The logged-in caller, or ``None`` for requests without a token."""
    if current_user is None:
        return None
    return _caller_from_token(current_user)
