"""Celery tasks that resync index counters and cohort percentiles out of band."""

import logging

from sqlalchemy import func, select, update

from profile_service.tasks.celery_app import celery_app
from profile_service.models import MainMajor, Scrap, SubMajor, User
from profile_service.models.base import SyncSessionLocal
from profile_service.models.category import Category
from profile_service.services.ranking_service import CohortRanking
from profile_service.services.search_index import SearchIndex

logger = logging.getLogger(__name__)


def count_owners(session, category: Category, document_id: str) -> int:
    return session.execute(
        select(func.count(Scrap.id)).where(
            Scrap.category == category.value,
            Scrap.document_id == document_id,
        )
    ).scalar() or 0


def recalculate_cohort_sync(session, main_major_id) -> int:
    """Sync twin of ranking_service.recalculate_cohort. Returns the number of rows written."""
    rows = session.execute(
        select(User.id, User.thermometer, User.top)
        .join(SubMajor, User.sub_major_id == SubMajor.id)
        .where(SubMajor.main_major_id == main_major_id)
    ).all()
    ranking = CohortRanking((row.id, row.thermometer) for row in rows)
    changed = ranking.changed_since({row.id: row.top for row in rows})
    if changed:
        session.execute(update(User), [{"id": user_id, "top": top} for user_id, top in changed.items()])
    return len(changed)


@celery_app.task(name="profile_service.tasks.scrap_tasks.reconcile_scrap_counter")
def reconcile_scrap_counter(category: str, document_id: str):
    """Set the index counter of one document to its number of ownership rows.

    Scheduled when two toggles for the same key race and the counter moved twice.
    """
    with SyncSessionLocal() as session:
        owners = count_owners(session, Category(category), document_id)

    written = SearchIndex().set_counter(Category(category), document_id, owners)
    logger.info("Reconciled counter for %s/%s to %d (written=%s)", category, document_id, owners, written)
    return {"category": category, "document_id": document_id, "count": owners, "written": written}


@celery_app.task(name="profile_service.tasks.scrap_tasks.recalculate_all_cohorts")
def recalculate_all_cohorts():
    """Recompute percentiles for every cohort (runs at 4 AM via beat)."""
    with SyncSessionLocal() as session:
        try:
            cohort_ids = session.execute(select(MainMajor.id)).scalars().all()

            updated = 0
            for main_major_id in cohort_ids:
                updated += recalculate_cohort_sync(session, main_major_id)

            session.commit()
            logger.info("Recalculated %d cohorts, %d percentiles changed", len(cohort_ids), updated)
            return {"cohorts": len(cohort_ids), "updated": updated}

        except Exception:
            session.rollback()
            logger.exception("Failed to recalculate cohort percentiles")
            raise
