"""Repositories for recommendations and next steps."""
from typing import List, Optional, Tuple

from sqlalchemy import func, select

from api.features.conversations.entities.recommendation import NextStep, Recommendation
from api.shared.base import BaseRepository


class RecommendationRepository(BaseRepository[Recommendation]):
    model = Recommendation

    async def list_filtered(
        self,
        *,
        conversation_id: Optional[str] = None,
        message_id: Optional[str] = None,
        car_id: Optional[str] = None,
        min_score: Optional[int] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Recommendation], int]:
        """Best matches first."""
        filters = dict(conversation_id=conversation_id, message_id=message_id, car_id=car_id)
        stmt = self._apply_filters(select(Recommendation), filters)
        count_stmt = self._apply_filters(select(func.count(Recommendation.id)), filters)
        if min_score is not None:
            stmt = stmt.where(Recommendation.match_score >= min_score)
            count_stmt = count_stmt.where(Recommendation.match_score >= min_score)
        return await self._paginate(
            stmt, count_stmt, offset=offset, limit=limit, order_by="-match_score"
        )


class NextStepRepository(BaseRepository[NextStep]):
    model = NextStep

    async def list_for_conversation(
        self, conversation_id: str, *, include_completed: bool = True
    ) -> List[NextStep]:
        stmt = select(NextStep).where(NextStep.conversation_id == conversation_id)
        if not include_completed:
            stmt = stmt.where(NextStep.is_completed.is_(False))
        stmt = stmt.order_by(NextStep.created_at.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
