# marketplace/schemas/category.py
import uuid
from datetime import datetime

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

from marketplace.schemas.common import Pagination


class CategoryCreate(SQLModel):
    """
    `slug` defaults to one derived from `name`. Both are normalized by the
    service (whitespace collapsed, slug lower-cased and hyphenated).
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=100)
    slug: str | None = Field(default=None, max_length=120)
    image_url: str = ""


class CategoryUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=100)
    slug: str | None = Field(default=None, max_length=120)
    image_url: str | None = None


class CategoryRead(SQLModel):
    id: uuid.UUID
    name: str
    slug: str
    image_url: str
    created_at: datetime
    updated_at: datetime


class CategoryPage(SQLModel):
    data: list[CategoryRead]
    pagination: Pagination
