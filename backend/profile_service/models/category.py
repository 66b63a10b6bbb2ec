"""Closed set of scrap/activity categories and their storage bindings."""

import enum

from profile_service.models.activity import (
    ActivityMixin,
    UserCompetition,
    UserIntern,
    UserLanguage,
    UserOutside,
    UserQnet,
)


class Category(str, enum.Enum):
    OUTSIDE = "outside"
    INTERN = "intern"
    COMPETITION = "competition"
    LANGUAGE = "language"
    QNET = "qnet"  # national certification exams

    @property
    def activity_model(self) -> type[ActivityMixin]:
        return ACTIVITY_MODELS[self]

    @property
    def index_name(self) -> str:
        """Index holding this category's documents (prefix applied by the index client)."""
        return self.value


ACTIVITY_MODELS: dict[Category, type[ActivityMixin]] = {
    Category.OUTSIDE: UserOutside,
    Category.INTERN: UserIntern,
    Category.COMPETITION: UserCompetition,
    Category.LANGUAGE: UserLanguage,
    Category.QNET: UserQnet,
}

_missing = set(Category) - set(ACTIVITY_MODELS)
if _missing:
    raise RuntimeError(f"Categories without an activity table: {sorted(c.value for c in _missing)}")
