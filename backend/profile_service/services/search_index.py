"""Search index client — per-category Meilisearch indexes holding scrap documents.

Counter maintenance is best effort: a missing document or an unreachable index
is logged and ignored, never raised. Reads raise ``SearchUnavailable`` because
an empty answer would be indistinguishable from "nothing scrapped".

Usage:
    index = SearchIndex()
    await index.apply_counter_async(CounterCommand(CounterOperation.INCREMENT, Category.INTERN, "abc"))
    result = await index.search_documents_async(Category.INTERN, ["abc"], sort=["view:desc"], page=1)
"""

import asyncio
import enum
import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any

import meilisearch
from meilisearch.errors import MeilisearchApiError, MeilisearchError

from profile_service.config import get_settings
from profile_service.exceptions import SearchUnavailable
from profile_service.models.category import Category

logger = logging.getLogger(__name__)

PRIMARY_KEY = "id"


class CounterOperation(str, enum.Enum):
    INCREMENT = "increment"
    DECREMENT = "decrement"


@dataclass(frozen=True)
class CounterCommand:
    """One step of the popularity counter on a single index document."""

    operation: CounterOperation
    category: Category
    document_id: str

    def apply(self, current: int) -> int:
        if self.operation is CounterOperation.INCREMENT:
            return current + 1
        return max(0, current - 1)


@dataclass
class SearchResult:
    hits: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0


class SearchIndex:
    """Lazy-connecting Meilisearch wrapper; one index per scrap category."""

    def __init__(
        self,
        url: str | None = None,
        api_key: str | None = None,
        index_prefix: str | None = None,
        counter_field: str | None = None,
    ):
        settings = get_settings()
        self._url = url or settings.meilisearch_url
        self._api_key = api_key if api_key is not None else settings.meilisearch_api_key
        self._prefix = index_prefix if index_prefix is not None else settings.meilisearch_index_prefix
        self._timeout_ms = settings.meilisearch_timeout_ms
        self.counter_field = counter_field or settings.index_counter_field
        self._client: meilisearch.Client | None = None
        self._counter_locks: dict[tuple[Category, str], threading.Lock] = {}

    @property
    def client(self) -> meilisearch.Client:
        if self._client is None:
            self._client = meilisearch.Client(self._url, self._api_key, timeout=self._timeout_ms // 1000)
        return self._client

    def index_uid(self, category: Category) -> str:
        return f"{self._prefix}{category.index_name}"

    def _index(self, category: Category):
        return self.client.index(self.index_uid(category))

    def configure_indexes(self) -> None:
        """Create missing category indexes and make id/sort fields usable in queries."""
        for category in Category:
            uid = self.index_uid(category)
            try:
                try:
                    self.client.get_index(uid)
                except MeilisearchApiError:
                    logger.info("Creating Meilisearch index: %s", uid)
                    task = self.client.create_index(uid, {"primaryKey": PRIMARY_KEY})
                    self.client.wait_for_task(task.task_uid, timeout_in_ms=self._timeout_ms)
                index = self.client.index(uid)
                index.update_filterable_attributes([PRIMARY_KEY])
                index.update_sortable_attributes(["sortDate", "view", self.counter_field])
            except MeilisearchError as e:
                logger.warning("Meilisearch index configuration failed for %s: %s", uid, e)

    # ---- counters ----

    def _counter_lock(self, category: Category, document_id: str) -> threading.Lock:
        return self._counter_locks.setdefault((category, document_id), threading.Lock())

    def apply_counter(self, command: CounterCommand) -> int | None:
        """Apply a counter step. Returns the new value, or None when nothing was written.

        Steps on one document are serialized and each write is awaited on the
        Meilisearch task queue, so the next read sees the previous step.
        """
        with self._counter_lock(command.category, command.document_id):
            index = self._index(command.category)
            try:
                document = dict(index.get_document(command.document_id, {"fields": [self.counter_field]}))
            except MeilisearchApiError as e:
                if e.code == "document_not_found":
                    logger.debug("Counter %s skipped, %s/%s not indexed", command.operation.value, command.category.value, command.document_id)
                else:
                    logger.warning("Counter read failed for %s/%s: %s", command.category.value, command.document_id, e)
                return None
            except MeilisearchError as e:
                logger.warning("Counter read failed for %s/%s: %s", command.category.value, command.document_id, e)
                return None

            value = command.apply(int(document.get(self.counter_field) or 0))
            if not self._write_counter(command.category, command.document_id, value):
                return None
            return value

    def set_counter(self, category: Category, document_id: str, value: int) -> bool:
        """Overwrite the counter of an existing document. Missing documents are left alone."""
        with self._counter_lock(category, document_id):
            try:
                self._index(category).get_document(document_id, {"fields": [PRIMARY_KEY]})
            except MeilisearchApiError as e:
                if e.code != "document_not_found":
                    logger.warning("Counter read failed for %s/%s: %s", category.value, document_id, e)
                return False
            except MeilisearchError as e:
                logger.warning("Counter read failed for %s/%s: %s", category.value, document_id, e)
                return False
            return self._write_counter(category, document_id, max(0, value))

    def _write_counter(self, category: Category, document_id: str, value: int) -> bool:
        # skip_creation: a document deleted since the read must not come back as a stub
        try:
            task = self._index(category).update_documents(
                [{PRIMARY_KEY: document_id, self.counter_field: value}],
                skip_creation=True,
            )
            finished = self.client.wait_for_task(task.task_uid, timeout_in_ms=self._timeout_ms)
        except MeilisearchError as e:
            logger.warning("Counter write failed for %s/%s: %s", category.value, document_id, e)
            return False
        if finished.status != "succeeded":
            logger.warning("Counter write task %s for %s/%s ended %s: %s", task.task_uid, category.value, document_id, finished.status, finished.error)
            return False
        return True

    # ---- reads ----

    @staticmethod
    def id_filter(document_ids: list[str]) -> str:
        return f"{PRIMARY_KEY} IN [{', '.join(json.dumps(str(i)) for i in document_ids)}]"

    def search_documents(
        self,
        category: Category,
        document_ids: list[str],
        sort: list[str] | None = None,
        page: int = 1,
        hits_per_page: int = 4,
    ) -> SearchResult:
        """Fetch one page of the given documents in ``sort`` order."""
        if not document_ids:
            return SearchResult()

        params: dict[str, Any] = {
            "filter": self.id_filter(document_ids),
            "page": page,
            "hitsPerPage": hits_per_page,
        }
        if sort:
            params["sort"] = sort
        try:
            response = self._index(category).search("", params)
        except MeilisearchError as e:
            logger.error("Meilisearch search failed on %s: %s", self.index_uid(category), e)
            raise SearchUnavailable("Search index is unavailable") from e
        return SearchResult(hits=response.get("hits", []), total=response.get("totalHits", 0))

    def count_documents(self, category: Category, document_ids: list[str]) -> int:
        """Number of the given documents that still exist in the index."""
        if not document_ids:
            return 0
        return self.search_documents(category, document_ids, page=1, hits_per_page=0).total

    # ---- async wrappers ----

    async def _run(self, fn, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, lambda: fn(*args, **kwargs))

    async def apply_counter_async(self, command: CounterCommand) -> int | None:
        """Async wrapper to avoid blocking the event loop during network calls."""
        return await self._run(self.apply_counter, command)

    async def search_documents_async(self, category: Category, document_ids: list[str], **kwargs) -> SearchResult:
        return await self._run(self.search_documents, category, document_ids, **kwargs)

    async def count_documents_async(self, category: Category, document_ids: list[str]) -> int:
        return await self._run(self.count_documents, category, document_ids)
