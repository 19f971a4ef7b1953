# marketplace/repositories/category_repo.py
import uuid

from sqlalchemy import func, or_
from sqlmodel import Session, select

from marketplace.models.category import Category
from marketplace.models.product import Product


class CategoryRepository:
    """
    Data access layer for Category.
    """

    def get_by_id(self, session: Session, category_id: uuid.UUID) -> Category | None:
        return session.get(Category, category_id)

    def get_by_slug(
        self,
        session: Session,
        slug: str,
        exclude_id: uuid.UUID | None = None,
    ) -> Category | None:
        stmt = select(Category).where(Category.slug == slug)
        if exclude_id:
            stmt = stmt.where(Category.id != exclude_id)
        return session.exec(stmt).first()

    def get_by_name(
        self,
        session: Session,
        name: str,
        exclude_id: uuid.UUID | None = None,
    ) -> Category | None:
        """Case-insensitive name lookup."""
        stmt = select(Category).where(func.lower(Category.name) == name.lower())
        if exclude_id:
            stmt = stmt.where(Category.id != exclude_id)
        return session.exec(stmt).first()

    def list_all(self, session: Session) -> list[Category]:
        return session.exec(select(Category).order_by(Category.name)).all()

    def search(
        self,
        session: Session,
        search: str | None = None,
        skip: int = 0,
        limit: int = 10,
    ) -> tuple[list[Category], int]:
        stmt = select(Category)
        count_stmt = select(func.count()).select_from(Category)
        if search:
            pattern = f"%{search}%"
            cond = or_(Category.name.ilike(pattern), Category.slug.ilike(pattern))
            stmt = stmt.where(cond)
            count_stmt = count_stmt.where(cond)

        stmt = stmt.order_by(Category.created_at.desc(), Category.name).offset(skip).limit(limit)
        return session.exec(stmt).all(), session.exec(count_stmt).one()

    def count_products(self, session: Session, category_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(Product)
            .where(Product.category_id == category_id)
        )
        return session.exec(stmt).one()

    def save(self, session: Session, category: Category) -> Category:
        session.add(category)
        session.commit()
        session.refresh(category)
        return category

    def delete(self, session: Session, category: Category) -> None:
        session.delete(category)
        session.commit()
