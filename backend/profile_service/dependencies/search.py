"""Search index dependency, one shared client per process."""

from functools import lru_cache

from profile_service.services.search_index import SearchIndex


@lru_cache
def get_search_index() -> SearchIndex:
    return SearchIndex()
