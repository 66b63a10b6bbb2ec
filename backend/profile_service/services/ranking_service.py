"""Ranking service — a user's "top percent" within their main-major cohort.

Percentile = rank / cohort size * 100, where rank 1 is the highest thermometer.
Equal thermometers are ordered by user id so the ranking is deterministic.
"""

import logging
from bisect import bisect_left, insort
from typing import Iterable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from profile_service.exceptions import NotFound
from profile_service.models.major import SubMajor
from profile_service.models.user import User
from profile_service.services.user_service import get_user_or_404

logger = logging.getLogger(__name__)


def percentile(rank: int, size: int) -> float:
    return round(rank / size * 100, 2)


class CohortRanking:
    """Order-statistic view of a cohort's scores.

    Keys are kept sorted as (-score, user_id), so rank lookups are a bisect and
    a score change moves one key instead of re-sorting the cohort.
    """

    def __init__(self, scores: Iterable[tuple[UUID, float]] = ()):
        self._scores: dict[UUID, float] = {}
        self._keys: list[tuple[float, UUID]] = []
        for user_id, score in scores:
            self.update(user_id, score)

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, user_id: UUID) -> bool:
        return user_id in self._scores

    def update(self, user_id: UUID, score: float):
        if user_id in self._scores:
            self.remove(user_id)
        self._scores[user_id] = score
        insort(self._keys, (-score, user_id))

    def remove(self, user_id: UUID):
        score = self._scores.pop(user_id)
        del self._keys[bisect_left(self._keys, (-score, user_id))]

    def rank_of(self, user_id: UUID) -> int:
        return bisect_left(self._keys, (-self._scores[user_id], user_id)) + 1

    def percentile_of(self, user_id: UUID) -> float:
        return percentile(self.rank_of(user_id), len(self))

    def percentiles(self) -> dict[UUID, float]:
        size = len(self)
        return {user_id: percentile(rank, size) for rank, (_, user_id) in enumerate(self._keys, start=1)}

    def changed_since(self, previous: dict[UUID, float]) -> dict[UUID, float]:
        """Percentiles that differ from ``previous`` (members missing from it count as changed)."""
        return {
            user_id: top
            for user_id, top in self.percentiles().items()
            if previous.get(user_id) != top
        }


def _cohort_query(main_major_id: UUID):
    return (
        select(User.id, User.thermometer, User.top)
        .join(SubMajor, User.sub_major_id == SubMajor.id)
        .where(SubMajor.main_major_id == main_major_id)
        .order_by(User.thermometer.desc(), User.id)
    )


async def load_cohort(db: AsyncSession, main_major_id: UUID) -> tuple[CohortRanking, dict[UUID, float]]:
    """Current ranking of a cohort plus the percentiles stored at the last recompute."""
    rows = (await db.execute(_cohort_query(main_major_id))).all()
    ranking = CohortRanking((row.id, row.thermometer) for row in rows)
    return ranking, {row.id: row.top for row in rows}


async def recalculate_one(db: AsyncSession, user_id: UUID, main_major_id: UUID) -> float:
    """Recompute and persist one user's percentile within the cohort."""
    ranking, _ = await load_cohort(db, main_major_id)
    if user_id not in ranking:
        raise NotFound("User is not a member of this cohort")

    top = ranking.percentile_of(user_id)
    await db.execute(update(User).where(User.id == user_id).values(top=top))
    return top


async def recalculate_cohort(db: AsyncSession, main_major_id: UUID) -> dict[UUID, float]:
    """Recompute every cohort member's percentile, writing only the ones that moved."""
    ranking, previous = await load_cohort(db, main_major_id)
    changed = ranking.changed_since(previous)

    if changed:
        await db.execute(
            update(User),
            [{"id": user_id, "top": top} for user_id, top in changed.items()],
        )

    logger.info(
        "Recomputed cohort %s: %d members, %d percentiles changed",
        main_major_id, len(ranking), len(changed),
    )
    return ranking.percentiles()


async def get_percentile(db: AsyncSession, user_id: UUID, main_major_id: UUID) -> User:
    """Recompute the user's percentile in the given cohort and return the refreshed user."""
    user = await get_user_or_404(db, user_id)
    await recalculate_one(db, user_id, main_major_id)
    await db.refresh(user)
    return user
