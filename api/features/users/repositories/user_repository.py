"""User repository."""
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select

from api.features.users.entities.user import User
from api.shared.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    async def get_by_session_id(self, session_id: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.session_id == session_id))
        return result.scalar_one_or_none()

    async def search(
        self,
        *,
        search: Optional[str] = None,
        language: Optional[str] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[User], int]:
        """Newest first, optionally matching name or email and filtered by language."""
        stmt = self._apply_filters(select(User), {"language": language})
        count_stmt = self._apply_filters(select(func.count(User.id)), {"language": language})
        if search:
            pattern = f"%{search}%"
            clause = or_(User.name.ilike(pattern), User.email.ilike(pattern))
            stmt = stmt.where(clause)
            count_stmt = count_stmt.where(clause)
        return await self._paginate(
            stmt, count_stmt, offset=offset, limit=limit, order_by="-created_at"
        )
