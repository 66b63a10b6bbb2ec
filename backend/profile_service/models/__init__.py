"""SQLAlchemy models. Importing the package registers every mapper so relationships resolve."""

from profile_service.models.base import Base
from profile_service.models.major import MainMajor, SubMajor
from profile_service.models.user import User
from profile_service.models.scrap import Scrap
from profile_service.models.interest import Interest, Keyword, UserInterest
from profile_service.models.activity import (
    ActivityMixin,
    UserCompetition,
    UserIntern,
    UserLanguage,
    UserOutside,
    UserQnet,
)
from profile_service.models.category import ACTIVITY_MODELS, Category

__all__ = [
    "Base",
    "MainMajor",
    "SubMajor",
    "User",
    "Scrap",
    "Interest",
    "Keyword",
    "UserInterest",
    "ActivityMixin",
    "UserCompetition",
    "UserIntern",
    "UserLanguage",
    "UserOutside",
    "UserQnet",
    "ACTIVITY_MODELS",
    "Category",
]
