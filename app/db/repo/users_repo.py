from __future__ import annotations

from datetime import datetime

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.users import User


class UsersRepo:
    @staticmethod
    async def upsert_member(
        session: AsyncSession,
        *,
        user_id: str,
        email: str,
        name: str,
        group_name: str,
        avatar_url: str | None = None,
        now_utc: datetime,
    ) -> None:
        stmt = insert(User).values(
            id=user_id,
            email=email.lower(),
            name=name,
            avatar_url=avatar_url,
            group_name=group_name,
            created_at=now_utc,
            last_login_at=now_utc,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[User.id],
            set_={
                "email": stmt.excluded.email,
                "name": stmt.excluded.name,
                "avatar_url": stmt.excluded.avatar_url,
                "group_name": stmt.excluded.group_name,
                "last_login_at": stmt.excluded.last_login_at,
            },
        )
        await session.execute(stmt)
