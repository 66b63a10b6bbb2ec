"""Thermometer service — activity counts, the weighted score, and the ranking cascade.

A thermometer mutation runs as a chain of committed steps:
activity write -> score recompute -> own percentile -> cohort percentiles.
Steps that already committed are not undone when a later step fails; the
mutation is then reported as failed and logged for follow-up.
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from profile_service.config import get_settings
from profile_service.exceptions import NotFound, ServiceError, TransactionFailure
from profile_service.models.category import Category
from profile_service.models.user import User
from profile_service.services.ranking_service import recalculate_cohort, recalculate_one
from profile_service.services.user_service import get_main_major_id, get_user_or_404

logger = logging.getLogger(__name__)

# Columns callers may never set on an activity row
PROTECTED_COLUMNS = {"id", "user_id", "created_at", "updated_at"}


@dataclass
class ActivityCounts:
    counts: dict[Category, int]
    sum: float


def thermometer_score(counts: dict[Category, int]) -> float:
    """Weighted sum of activity counts, capped at the configured maximum."""
    settings = get_settings()
    total = sum(settings.thermometer_weights.get(c.value, 0.0) * counts.get(c, 0) for c in Category)
    return round(min(settings.thermometer_max, total), 2)


async def count_activities(db: AsyncSession, user_id: UUID) -> dict[Category, int]:
    counts = {}
    for category in Category:
        model = category.activity_model
        result = await db.execute(select(func.count(model.id)).where(model.user_id == user_id))
        counts[category] = result.scalar() or 0
    return counts


async def get_activity_counts(db: AsyncSession, user_id: UUID) -> ActivityCounts:
    await get_user_or_404(db, user_id)
    counts = await count_activities(db, user_id)
    return ActivityCounts(counts=counts, sum=thermometer_score(counts))


def _activity_values(category: Category, payload: dict[str, Any]) -> dict[str, Any]:
    allowed = set(category.activity_model.__table__.columns.keys()) - PROTECTED_COLUMNS
    unknown = sorted(set(payload) - allowed)
    if unknown:
        raise ServiceError(f"Unknown {category.value} activity fields: {', '.join(unknown)}")
    return payload


async def _run_cascade(db: AsyncSession, user_id: UUID, main_major_id: UUID) -> float:
    """Score -> own percentile -> cohort percentiles. Returns the new thermometer."""
    step = "score"
    try:
        counts = await count_activities(db, user_id)
        thermometer = thermometer_score(counts)
        await db.execute(update(User).where(User.id == user_id).values(thermometer=thermometer))
        await db.commit()

        step = "own percentile"
        await recalculate_one(db, user_id, main_major_id)

        step = "cohort percentiles"
        await recalculate_cohort(db, main_major_id)
        await db.commit()
    except Exception as e:
        await db.rollback()
        raise TransactionFailure(f"Thermometer cascade failed at the {step} step") from e
    return thermometer


async def update_thermometer(
    db: AsyncSession,
    user_id: UUID,
    category: Category,
    create: dict[str, Any] | None = None,
    activity_id: UUID | None = None,
) -> bool:
    """Create or delete one activity row and cascade the score and ranking updates.

    Exactly one of ``create`` (column values for a new row) or ``activity_id``
    (a row to delete) must be given. Missing prerequisites raise NotFound
    before anything is written; failures after that return False.
    """
    if (create is None) == (activity_id is None):
        raise ServiceError("Provide either an activity to create or an activity id to delete")

    user = await get_user_or_404(db, user_id)
    main_major_id = await get_main_major_id(db, user)
    model = category.activity_model

    activity = None
    if activity_id is not None:
        result = await db.execute(select(model).where(model.id == activity_id, model.user_id == user_id))
        activity = result.scalar_one_or_none()
        if not activity:
            raise NotFound("No activity matches this id")
    else:
        values = _activity_values(category, create)

    try:
        if activity is not None:
            await db.delete(activity)
        else:
            db.add(model(user_id=user_id, **values))
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Activity write failed for user %s (%s)", user_id, category.value)
        return False

    try:
        thermometer = await _run_cascade(db, user_id, main_major_id)
    except TransactionFailure:
        logger.exception("thermometer cascade partially applied for user %s", user_id)
        return False

    logger.info(
        "User %s %s a %s activity, thermometer=%s",
        user_id, "deleted" if activity is not None else "created", category.value, thermometer,
    )
    return True
