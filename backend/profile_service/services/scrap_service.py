"""Scrap service — toggles scrap ownership and lists a user's scrapped documents.

Ownership lives in the relational ``scraps`` table. The popularity counter and
the displayable documents live in the search index, so every toggle touches
both stores and every listing resolves ids relationally before reading the index.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from profile_service.config import get_settings
from profile_service.models.category import Category
from profile_service.models.scrap import Scrap
from profile_service.services.search_index import CounterCommand, CounterOperation, SearchIndex
from profile_service.services.user_service import get_user_or_404

logger = logging.getLogger(__name__)

LANGUAGE_TITLES = {
    "toeic": "TOEIC",
    "toeicSpeaking": "TOEIC Speaking",
    "toeicWriting": "TOEIC Writing",
    "toeicBridge": "TOEIC Bridge",
    "jpt": "JPT",
    "sjpt": "SJPT",
    "tsc": "TSC",
    "kpe": "KPE",
}


@dataclass
class ScrapCount:
    count: int


@dataclass
class ScrapPage:
    items: list[dict[str, Any]] = field(default_factory=list)
    page: int = 1
    total: int = 0


@dataclass
class ScrapEmpty:
    """Nothing to show: no owned documents, or none left on the requested page."""


ScrapListing = ScrapCount | ScrapPage | ScrapEmpty


# --- Toggle ---

async def toggle_scrap(
    db: AsyncSession,
    index: SearchIndex,
    user_id: UUID,
    category: Category,
    document_id: str,
) -> bool:
    """Flip the scrap state of a document. Returns True when it is now scrapped."""
    await get_user_or_404(db, user_id)

    was_scrapped = await _is_scrapped(db, user_id, category, document_id)

    if was_scrapped:
        write = _remove_scrap(db, user_id, category, document_id)
        command = CounterCommand(CounterOperation.DECREMENT, category, document_id)
    else:
        write = _add_scrap(db, user_id, category, document_id)
        command = CounterCommand(CounterOperation.INCREMENT, category, document_id)

    changed, counter = await asyncio.gather(write, _apply_counter(index, command))

    if not changed:
        # Another toggle for the same key got there first; the counter moved twice.
        logger.warning(
            "Lost toggle race on %s/%s for user %s, scheduling counter repair",
            category.value, document_id, user_id,
        )
        schedule_counter_repair(category, document_id)

    logger.info(
        "User %s %s %s/%s (counter=%s)",
        user_id, "unscrapped" if was_scrapped else "scrapped", category.value, document_id, counter,
    )
    return not was_scrapped


async def _is_scrapped(db: AsyncSession, user_id: UUID, category: Category, document_id: str) -> bool:
    result = await db.execute(
        select(Scrap.id).where(
            Scrap.user_id == user_id,
            Scrap.category == category.value,
            Scrap.document_id == document_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def _add_scrap(db: AsyncSession, user_id: UUID, category: Category, document_id: str) -> bool:
    """Insert the ownership row. Returns False if the unique key already existed."""
    try:
        async with db.begin_nested():
            db.add(Scrap(user_id=user_id, category=category.value, document_id=document_id))
    except IntegrityError:
        return False
    return True


async def _remove_scrap(db: AsyncSession, user_id: UUID, category: Category, document_id: str) -> bool:
    """Delete the ownership row. Returns False if it was already gone."""
    result = await db.execute(
        delete(Scrap).where(
            Scrap.user_id == user_id,
            Scrap.category == category.value,
            Scrap.document_id == document_id,
        )
    )
    return result.rowcount > 0


async def _apply_counter(index: SearchIndex, command: CounterCommand) -> int | None:
    try:
        return await index.apply_counter_async(command)
    except Exception:
        logger.exception(
            "Partial failure: counter %s on %s/%s not applied",
            command.operation.value, command.category.value, command.document_id,
        )
        return None


def schedule_counter_repair(category: Category, document_id: str):
    """Dispatch Celery task to resync the index counter with ownership rows."""
    try:
        from profile_service.tasks.scrap_tasks import reconcile_scrap_counter
        reconcile_scrap_counter.delay(category.value, document_id)
    except Exception:
        logger.warning("Could not schedule counter repair for %s/%s", category.value, document_id)


# --- Listing ---

async def get_scrap_ids(db: AsyncSession, user_id: UUID, category: Category) -> list[str]:
    result = await db.execute(
        select(Scrap.document_id)
        .where(Scrap.user_id == user_id, Scrap.category == category.value)
        .order_by(Scrap.created_at)
    )
    return list(result.scalars().all())


def parse_page(page: Any) -> int:
    """1-indexed page number; anything missing, non-numeric or below 1 is page 1."""
    try:
        number = int(page)
    except (TypeError, ValueError):
        return 1
    return number if number >= 1 else 1


def sort_for(category: Category) -> list[str]:
    if category is Category.LANGUAGE:
        return ["sortDate:asc"]
    return ["view:desc"]


def language_title(test: str | None) -> str:
    if not test:
        return ""
    return LANGUAGE_TITLES.get(test, test)


def shape_document(category: Category, hit: dict[str, Any]) -> dict[str, Any]:
    """Convert a raw index hit into the item shape clients expect for the category."""
    data = dict(hit)
    document_id = data.pop("id", None)

    if category is Category.LANGUAGE:
        test = data.pop("test", None)
        return {
            "id": document_id,
            "enterprise": get_settings().language_enterprise,
            **data,
            "title": language_title(test),
        }

    if category is Category.QNET:
        schedules = data.pop("examSchedules", None) or []
        first = schedules[0] if schedules else {}
        return {
            "mainImage": get_settings().certification_image_url,
            "id": document_id,
            "period": first.get("wtPeriod"),
            "examDate": first.get("wtDday"),
            **data,
        }

    return {"id": document_id, **data}


async def list_scraps(
    db: AsyncSession,
    index: SearchIndex,
    user_id: UUID,
    category: Category,
    page: Any = None,
    count_only: bool = False,
) -> ScrapListing:
    """List the user's scrapped documents for a category, or just count them."""
    await get_user_or_404(db, user_id)

    document_ids = await get_scrap_ids(db, user_id, category)

    if count_only:
        return ScrapCount(count=await index.count_documents_async(category, document_ids))

    if not document_ids:
        return ScrapEmpty()

    page_number = parse_page(page)
    result = await index.search_documents_async(
        category,
        document_ids,
        sort=sort_for(category),
        page=page_number,
        hits_per_page=get_settings().scrap_page_size,
    )
    if not result.hits:
        return ScrapEmpty()

    return ScrapPage(
        items=[shape_document(category, hit) for hit in result.hits],
        page=page_number,
        total=result.total,
    )
