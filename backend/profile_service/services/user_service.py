"""User service — lookups, creation with cohort and interest resolution, profile updates and deletion."""

import logging
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from profile_service.exceptions import Conflict, NotFound
from profile_service.models.category import ACTIVITY_MODELS, Category
from profile_service.models.interest import Interest, Keyword, UserInterest
from profile_service.models.major import MainMajor, SubMajor
from profile_service.models.scrap import Scrap
from profile_service.models.user import User

logger = logging.getLogger(__name__)


async def get_user_or_404(db: AsyncSession, user_id: UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFound("No user matches this id")
    return user


async def get_main_major_id(db: AsyncSession, user: User) -> UUID:
    """Cohort of a user: the main major above their sub major."""
    result = await db.execute(select(SubMajor.main_major_id).where(SubMajor.id == user.sub_major_id))
    main_major_id = result.scalar_one_or_none()
    if not main_major_id:
        raise NotFound("No cohort matches this user")
    return main_major_id


async def check_nickname(db: AsyncSession, nickname: str) -> bool:
    """True if the nickname is free; Conflict otherwise."""
    result = await db.execute(select(User.id).where(User.nickname == nickname))
    if result.scalar_one_or_none():
        raise Conflict("Nickname is already in use")
    return True


async def find_accounts(db: AsyncSession, name: str, phone: str) -> list[dict]:
    """Sign-in emails and providers registered under a name and phone number."""
    result = await db.execute(
        select(User.email, User.provider)
        .where(User.name == name, User.phone == phone)
        .order_by(User.created_at)
    )
    return [{"email": row.email, "provider": row.provider} for row in result.all()]


async def _resolve_sub_major(db: AsyncSession, main_major: str, sub_major: str) -> SubMajor:
    result = await db.execute(
        select(SubMajor)
        .join(MainMajor, SubMajor.main_major_id == MainMajor.id)
        .where(MainMajor.name == main_major, SubMajor.name == sub_major)
    )
    existing = result.scalar_one_or_none()
    if existing:
        return existing

    main = (await db.execute(select(MainMajor).where(MainMajor.name == main_major))).scalar_one_or_none()
    if not main:
        main = MainMajor(name=main_major)
        db.add(main)
        await db.flush()

    created = SubMajor(name=sub_major, main_major_id=main.id)
    db.add(created)
    await db.flush()
    return created


# --- Interests ---

async def _get_or_create_named(db: AsyncSession, model, name: str):
    existing = (await db.execute(select(model).where(model.name == name))).scalar_one_or_none()
    if existing:
        return existing
    created = model(name=name)
    db.add(created)
    await db.flush()
    return created


async def save_interest_keywords(db: AsyncSession, user_id: UUID, interests: dict[str, list[str]]):
    """Attach keywords to the user under each interest, creating vocabulary on first use."""
    for interest_name, keywords in interests.items():
        interest = await _get_or_create_named(db, Interest, interest_name)
        for keyword_name in dict.fromkeys(keywords):
            keyword = await _get_or_create_named(db, Keyword, keyword_name)
            db.add(UserInterest(user_id=user_id, interest_id=interest.id, keyword_id=keyword.id))
    await db.flush()


async def replace_interest_keywords(db: AsyncSession, user_id: UUID, interests: dict[str, list[str]]):
    await db.execute(delete(UserInterest).where(UserInterest.user_id == user_id))
    await save_interest_keywords(db, user_id, interests)


async def get_interest_keywords(db: AsyncSession, user_id: UUID) -> list[dict]:
    """The user's keywords grouped by interest."""
    result = await db.execute(
        select(Interest.name.label("interest"), Keyword.name.label("keyword"))
        .select_from(UserInterest)
        .join(Interest, UserInterest.interest_id == Interest.id)
        .join(Keyword, UserInterest.keyword_id == Keyword.id)
        .where(UserInterest.user_id == user_id)
        .order_by(Interest.name, Keyword.name)
    )

    groups: dict[str, list[str]] = {}
    for row in result.all():
        groups.setdefault(row.interest, []).append(row.keyword)
    return [{"interest": interest, "keywords": keywords} for interest, keywords in groups.items()]


# --- Users ---

async def create_user(
    db: AsyncSession,
    *,
    email: str,
    name: str,
    nickname: str,
    main_major: str,
    sub_major: str,
    phone: str | None = None,
    profile_image: str | None = None,
    provider: str = "email",
    interests: dict[str, list[str]] | None = None,
) -> UUID:
    """Create a user with their major pair and interests in one transaction. Returns the new user id."""
    await check_nickname(db, nickname)

    try:
        async with db.begin_nested():
            major = await _resolve_sub_major(db, main_major, sub_major)
            user = User(
                email=email,
                name=name,
                nickname=nickname,
                phone=phone,
                profile_image=profile_image,
                provider=provider,
                sub_major_id=major.id,
            )
            db.add(user)
            await db.flush()
            await save_interest_keywords(db, user.id, interests or {})
    except IntegrityError as e:
        # Lost a race on the nickname, or the email is already registered
        raise Conflict("Nickname or email is already in use") from e

    logger.info("Created user %s in %s/%s", user.id, main_major, sub_major)
    return user.id


async def update_profile(
    db: AsyncSession,
    user_id: UUID,
    *,
    nickname: str | None = None,
    profile_image: str | None = None,
    interests: dict[str, list[str]] | None = None,
) -> User:
    """Update nickname, profile image and/or interests. A taken nickname aborts the whole update."""
    user = await get_user_or_404(db, user_id)

    if nickname and nickname != user.nickname:
        await check_nickname(db, nickname)

    try:
        async with db.begin_nested():
            if nickname:
                user.nickname = nickname
            if profile_image is not None:
                user.profile_image = profile_image
            if interests is not None:
                await replace_interest_keywords(db, user_id, interests)
            await db.flush()
    except IntegrityError as e:
        raise Conflict("Nickname is already in use") from e

    return user


async def get_user_summary(db: AsyncSession, user_id: UUID) -> dict:
    """Profile card data: nickname, image, score, percentile and main major name."""
    user = await get_user_or_404(db, user_id)

    result = await db.execute(
        select(MainMajor.name)
        .join(SubMajor, SubMajor.main_major_id == MainMajor.id)
        .where(SubMajor.id == user.sub_major_id)
    )

    return {
        "id": user.id,
        "nickname": user.nickname,
        "profile_image": user.profile_image,
        "thermometer": user.thermometer,
        "top": user.top,
        "main_major": result.scalar_one_or_none(),
    }


async def get_user_profile(db: AsyncSession, user_id: UUID) -> dict:
    """Editable profile: nickname, image and interest keywords."""
    user = await get_user_or_404(db, user_id)
    return {
        "nickname": user.nickname,
        "profile_image": user.profile_image,
        "interests": await get_interest_keywords(db, user_id),
    }


async def delete_user(db: AsyncSession, user_id: UUID) -> bool:
    """Delete a user and everything they own, then rerank the cohort they leave.

    Index counters of the documents they had scrapped are resynced by the
    repair task rather than stepped here.
    """
    from profile_service.services.ranking_service import recalculate_cohort
    from profile_service.services.scrap_service import schedule_counter_repair

    user = await get_user_or_404(db, user_id)
    main_major_id = await get_main_major_id(db, user)

    scrapped = (await db.execute(
        select(Scrap.category, Scrap.document_id).where(Scrap.user_id == user_id)
    )).all()

    await db.execute(delete(Scrap).where(Scrap.user_id == user_id))
    await db.execute(delete(UserInterest).where(UserInterest.user_id == user_id))
    for model in ACTIVITY_MODELS.values():
        await db.execute(delete(model).where(model.user_id == user_id))
    await db.execute(delete(User).where(User.id == user_id))
    await db.commit()

    await recalculate_cohort(db, main_major_id)
    await db.commit()

    for category, document_id in scrapped:
        schedule_counter_repair(Category(category), document_id)

    logger.info("Deleted user %s (%d scraps released)", user_id, len(scrapped))
    return True
