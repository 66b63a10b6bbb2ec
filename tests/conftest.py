"""Shared fixtures: in-memory SQLite database, fake search index, user factory."""

import pytest
from sqlalchemy import event, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from profile_service.models import Base, User
from profile_service.models.category import Category
from profile_service.services import scrap_service, user_service
from profile_service.services.search_index import CounterCommand, SearchResult


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
async def engine():
    """Fresh in-memory database per test, with working SAVEPOINTs."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db):
    """Create a committed user in a cohort with a preset thermometer."""
    async def _make(
        nickname: str,
        thermometer: float = 0.0,
        main_major: str = "Engineering",
        sub_major: str = "Computer Science",
    ) -> User:
        user_id = await user_service.create_user(
            db,
            email=f"{nickname}@example.com",
            name=nickname.title(),
            nickname=nickname,
            main_major=main_major,
            sub_major=sub_major,
        )
        await db.execute(update(User).where(User.id == user_id).values(thermometer=thermometer))
        await db.commit()
        return await user_service.get_user_or_404(db, user_id)

    return _make


# =============================================================================
# Search index
# =============================================================================

class FakeSearchIndex:
    """In-memory stand-in for SearchIndex's async interface."""

    def __init__(self, counter_field: str = "scrap"):
        self.counter_field = counter_field
        self.documents: dict[Category, dict[str, dict]] = {c: {} for c in Category}
        self.commands: list[CounterCommand] = []
        self.fail_counters = False

    def add(self, category: Category, document_id: str, **fields):
        self.documents[category][document_id] = {"id": document_id, **fields}

    def counter(self, category: Category, document_id: str):
        document = self.documents[category].get(document_id)
        return None if document is None else document.get(self.counter_field)

    async def apply_counter_async(self, command: CounterCommand):
        self.commands.append(command)
        if self.fail_counters:
            raise ConnectionError("index unreachable")
        document = self.documents[command.category].get(command.document_id)
        if document is None:
            return None
        document[self.counter_field] = command.apply(int(document.get(self.counter_field) or 0))
        return document[self.counter_field]

    async def search_documents_async(self, category, document_ids, sort=None, page=1, hits_per_page=4):
        wanted = set(document_ids)
        docs = [d for doc_id, d in self.documents[category].items() if doc_id in wanted]
        for expression in reversed(sort or []):
            key, direction = expression.split(":")
            docs.sort(key=lambda d: d[key], reverse=direction == "desc")
        start = (page - 1) * hits_per_page
        return SearchResult(hits=[dict(d) for d in docs[start:start + hits_per_page]], total=len(docs))

    async def count_documents_async(self, category, document_ids):
        return (await self.search_documents_async(category, document_ids)).total


@pytest.fixture
def index():
    return FakeSearchIndex()


@pytest.fixture
def repairs(monkeypatch):
    """Record counter repairs instead of dispatching Celery tasks."""
    scheduled = []
    monkeypatch.setattr(
        scrap_service, "schedule_counter_repair",
        lambda category, document_id: scheduled.append((category, document_id)),
    )
    return scheduled
