"""Endpoints for the current user's tables."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user
from db.models.user import User
from db.models.user_table import UserTable
from db.session import get_session
from models.user_table import UserTableCreate, UserTableRead


router = APIRouter(prefix="/tables", tags=["tables"])


@router.post("/", response_model=UserTableRead, status_code=status.HTTP_201_CREATED)
async def register_table(
    payload: UserTableCreate,
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> UserTableRead:
    """Register a table living in the current user's schema."""
    result = await db.execute(
        select(UserTable).where(
            UserTable.user_id == current_user.id, UserTable.name == payload.name
        )
    )
    if result.scalars().first():
        raise HTTPException(status_code=409, detail="Table already registered")

    table = UserTable(user_id=current_user.id, name=payload.name, privacy=payload.privacy)
    db.add(table)
    await db.commit()
    await db.refresh(table)
    return UserTableRead.model_validate(table)


@router.get("/", response_model=list[UserTableRead])
async def list_tables(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
) -> list[UserTableRead]:
    """List the current user's tables."""
    result = await db.execute(
        select(UserTable)
        .where(UserTable.user_id == current_user.id)
        .order_by(UserTable.name.asc())
        .limit(limit)
        .offset(offset)
    )
    return [UserTableRead.model_validate(item) for item in result.scalars().all()]
