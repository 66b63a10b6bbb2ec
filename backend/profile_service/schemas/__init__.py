"""Pydantic schemas package."""

from profile_service.schemas.user import (
    AccountRead,
    InterestKeywords,
    ProfileUpdate,
    UserCreate,
    UserCreated,
    UserRead,
    UserProfile,
    UserSummary,
)
from profile_service.schemas.scrap import (
    ScrapPageRead,
    ScrapToggle,
    ScrapToggleResult,
)
from profile_service.schemas.thermometer import (
    ActivityCountsRead,
    ActivityCreate,
    ThermometerUpdate,
    TopPercentRequest,
)

__all__ = [
    # User
    "AccountRead",
    "InterestKeywords",
    "ProfileUpdate",
    "UserCreate",
    "UserCreated",
    "UserRead",
    "UserProfile",
    "UserSummary",
    # Scrap
    "ScrapPageRead",
    "ScrapToggle",
    "ScrapToggleResult",
    # Thermometer
    "ActivityCountsRead",
    "ActivityCreate",
    "ThermometerUpdate",
    "TopPercentRequest",
]
