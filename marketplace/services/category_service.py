# marketplace/services/category_service.py
import re
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from marketplace.models.category import Category
from marketplace.repositories.category_repo import CategoryRepository
from marketplace.schemas.category import CategoryCreate, CategoryPage, CategoryRead, CategoryUpdate
from marketplace.schemas.common import Pagination


def normalize_name(value: str | None) -> str:
    return re.sub(r"\s+", " ", (value or "").strip())


def normalize_slug(value: str | None) -> str:
    """'  Home & Garden ' -> 'home-garden'"""
    slug = re.sub(r"[^a-z0-9]+", "-", (value or "").strip().lower())
    return slug.strip("-")


class CategoryService:
    """
    Public category listing and admin category management.
    """

    def __init__(self, repo: CategoryRepository):
        self.repo = repo

    def get_category(self, session: Session, category_id: uuid.UUID) -> Category:
        category = self.repo.get_by_id(session, category_id)
        if not category:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found",
            )
        return category

    def _ensure_unique(
        self,
        session: Session,
        name: str | None,
        slug: str | None,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        if slug is not None and self.repo.get_by_slug(session, slug, exclude_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Category slug already exists",
            )
        if name is not None and self.repo.get_by_name(session, name, exclude_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Category name already exists",
            )

    def list_categories(self, session: Session) -> list[Category]:
        return self.repo.list_all(session)

    def search_categories(
        self,
        session: Session,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> CategoryPage:
        rows, total = self.repo.search(
            session, (search or "").strip() or None, skip=(page - 1) * limit, limit=limit
        )
        return CategoryPage(
            data=[CategoryRead.model_validate(c, from_attributes=True) for c in rows],
            pagination=Pagination.build(page, limit, total),
        )

    def create_category(self, session: Session, payload: CategoryCreate) -> Category:
        name = normalize_name(payload.name)
        slug = normalize_slug(payload.slug or name)

        if not name:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Category name is required",
            )
        if not slug:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Category slug is required",
            )

        self._ensure_unique(session, name, slug)
        category = Category(name=name, slug=slug, image_url=payload.image_url.strip())
        return self.repo.save(session, category)

    def update_category(
        self,
        session: Session,
        category_id: uuid.UUID,
        payload: CategoryUpdate,
    ) -> Category:
        category = self.get_category(session, category_id)
        changes = payload.model_dump(exclude_unset=True)
        if not changes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No fields to update",
            )

        name = normalize_name(payload.name) if "name" in changes else None
        slug = normalize_slug(payload.slug) if "slug" in changes else None
        if name == "":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Category name cannot be empty",
            )
        if slug == "":
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Category slug cannot be empty",
            )

        self._ensure_unique(session, name, slug, exclude_id=category.id)

        if name is not None:
            category.name = name
        if slug is not None:
            category.slug = slug
        if "image_url" in changes:
            category.image_url = (payload.image_url or "").strip()

        category.updated_at = datetime.now(timezone.utc)
        return self.repo.save(session, category)

    def delete_category(self, session: Session, category_id: uuid.UUID) -> None:
        """
        Hard delete, refused while any product (active or not) still uses it.
        """
        category = self.get_category(session, category_id)
        in_use = self.repo.count_products(session, category.id)
        if in_use:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Cannot delete category because {in_use} product(s) still use it",
            )
        self.repo.delete(session, category)
