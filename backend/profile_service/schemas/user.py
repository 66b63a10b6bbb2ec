"""Pydantic schemas for users and their profile."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    """Sign-up payload; the major pair and interest vocabulary are created on first use."""

    email: str = Field(..., max_length=255)
    name: str = Field(..., max_length=100)
    nickname: str = Field(..., min_length=1, max_length=50)
    phone: str | None = Field(None, max_length=20)
    profile_image: str | None = None
    provider: str = Field("email", max_length=20)
    main_major: str = Field(..., max_length=100)
    sub_major: str = Field(..., max_length=100)
    interests: dict[str, list[str]] = Field(default_factory=dict, description="Keywords per interest")


class UserCreated(BaseModel):
    id: UUID


class ProfileUpdate(BaseModel):
    nickname: str | None = Field(None, min_length=1, max_length=50)
    profile_image: str | None = None
    interests: dict[str, list[str]] | None = Field(None, description="Replaces every interest when given")


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    nickname: str
    profile_image: str | None = None
    thermometer: float
    top: float


class UserSummary(BaseModel):
    id: UUID
    nickname: str
    profile_image: str | None = None
    thermometer: float
    top: float
    main_major: str | None = None


class AccountRead(BaseModel):
    email: str
    provider: str


class InterestKeywords(BaseModel):
    interest: str
    keywords: list[str]


class UserProfile(BaseModel):
    nickname: str
    profile_image: str | None = None
    interests: list[InterestKeywords] = []
