"""Pydantic schemas for scrap toggling and listing."""

from typing import Any

from pydantic import BaseModel

from profile_service.models.category import Category


class ScrapToggle(BaseModel):
    category: Category
    document_id: str


class ScrapToggleResult(BaseModel):
    is_scrapped: bool


class ScrapPageRead(BaseModel):
    items: list[dict[str, Any]]
    page: int
    total: int
