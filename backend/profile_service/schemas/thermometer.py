"""Pydantic schemas for activity mutations, counts and percentiles."""

from datetime import date
from typing import Any
from uuid import UUID

from pydantic import BaseModel, model_validator

from profile_service.models.category import Category


class ActivityCreate(BaseModel):
    """Column values for a new activity row. Category-specific fields are optional."""

    title: str
    started_on: date | None = None
    ended_on: date | None = None
    extra_data: dict[str, Any] | None = None
    organization: str | None = None
    company: str | None = None
    organizer: str | None = None
    award: str | None = None
    test: str | None = None
    score: str | None = None
    license_number: str | None = None


class ThermometerUpdate(BaseModel):
    category: Category
    create: ActivityCreate | None = None
    activity_id: UUID | None = None

    @model_validator(mode="after")
    def check_one_action(self):
        if (self.create is None) == (self.activity_id is None):
            raise ValueError("Provide exactly one of 'create' or 'activity_id'")
        return self


class ActivityCountsRead(BaseModel):
    counts: dict[str, int]
    sum: float


class TopPercentRequest(BaseModel):
    main_major_id: UUID
