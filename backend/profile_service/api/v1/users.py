"""User API endpoints — profile, scraps, thermometer activities and cohort ranking."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from profile_service.dependencies.auth import require_user_id
from profile_service.dependencies.search import get_search_index
from profile_service.models.base import get_db
from profile_service.models.category import Category
from profile_service.schemas.scrap import ScrapPageRead, ScrapToggle, ScrapToggleResult
from profile_service.schemas.thermometer import ActivityCountsRead, ThermometerUpdate, TopPercentRequest
from profile_service.schemas.user import (
    AccountRead,
    ProfileUpdate,
    UserCreate,
    UserCreated,
    UserProfile,
    UserRead,
    UserSummary,
)
from profile_service.services import ranking_service, scrap_service, thermometer_service, user_service
from profile_service.services.search_index import SearchIndex

router = APIRouter(prefix="/users", tags=["users"])


# --- Profile ---

@router.post("", response_model=UserCreated, status_code=201)
async def create_user(body: UserCreate, db: AsyncSession = Depends(get_db)):
    """Create a user; the major pair is created on first use."""
    user_id = await user_service.create_user(db, **body.model_dump())
    return UserCreated(id=user_id)


@router.get("/nickname/{nickname}", response_model=bool)
async def check_nickname(nickname: str, db: AsyncSession = Depends(get_db)):
    """True when the nickname is free, 409 otherwise."""
    return await user_service.check_nickname(db, nickname)


@router.get("/me", response_model=UserSummary)
async def get_me(
    user_id: UUID = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_user_summary(db, user_id)


@router.patch("/me", response_model=UserRead)
async def update_me(
    body: ProfileUpdate,
    user_id: UUID = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.update_profile(db, user_id, **body.model_dump(exclude_unset=True))


@router.delete("/me", response_model=bool)
async def delete_me(
    request: Request,
    user_id: UUID = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete the account and everything it owns, then end the session."""
    deleted = await user_service.delete_user(db, user_id)
    request.session.clear()
    return deleted


@router.get("/me/profile", response_model=UserProfile)
async def get_my_profile(
    user_id: UUID = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_user_profile(db, user_id)


@router.get("/accounts", response_model=list[AccountRead])
async def find_accounts(
    name: str = Query(..., max_length=100),
    phone: str = Query(..., max_length=20),
    db: AsyncSession = Depends(get_db),
):
    """Sign-in emails and providers registered under a name and phone number."""
    return await user_service.find_accounts(db, name, phone)


# --- Scraps ---

@router.post("/me/scraps", response_model=ScrapToggleResult)
async def toggle_scrap(
    body: ScrapToggle,
    user_id: UUID = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
    index: SearchIndex = Depends(get_search_index),
):
    """Scrap the document, or unscrap it when already scrapped."""
    is_scrapped = await scrap_service.toggle_scrap(db, index, user_id, body.category, body.document_id)
    return ScrapToggleResult(is_scrapped=is_scrapped)


@router.get("/me/scraps", response_model=ScrapPageRead | int | None)
async def list_scraps(
    category: Category,
    page: str | None = Query(None, description="1-indexed page; invalid values mean page 1"),
    count: bool = Query(False, description="Only return the number of scrapped documents"),
    user_id: UUID = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
    index: SearchIndex = Depends(get_search_index),
):
    """A page of scrapped documents, their count, or null when there is nothing to show."""
    listing = await scrap_service.list_scraps(db, index, user_id, category, page=page, count_only=count)

    if isinstance(listing, scrap_service.ScrapCount):
        return listing.count
    if isinstance(listing, scrap_service.ScrapPage):
        return ScrapPageRead(items=listing.items, page=listing.page, total=listing.total)
    return None


# --- Thermometer ---

@router.post("/me/thermometer", response_model=bool)
async def update_thermometer(
    body: ThermometerUpdate,
    user_id: UUID = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create or delete an activity; False when the ranking cascade did not finish."""
    create = body.create.model_dump(exclude_none=True) if body.create else None
    return await thermometer_service.update_thermometer(
        db, user_id, body.category, create=create, activity_id=body.activity_id
    )


@router.get("/me/thermometer", response_model=ActivityCountsRead)
async def get_activity_counts(
    user_id: UUID = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    counts = await thermometer_service.get_activity_counts(db, user_id)
    return ActivityCountsRead(counts={c.value: n for c, n in counts.counts.items()}, sum=counts.sum)


@router.post("/me/top-percent", response_model=UserRead)
async def top_percent(
    body: TopPercentRequest,
    user_id: UUID = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Recompute the caller's percentile within the given cohort."""
    return await ranking_service.get_percentile(db, user_id, body.main_major_id)
