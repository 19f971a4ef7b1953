# marketplace/schemas/common.py
import math

from sqlmodel import SQLModel


class Pagination(SQLModel):
    """Page envelope shared by the admin listings."""

    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))
