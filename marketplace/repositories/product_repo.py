# marketplace/repositories/product_repo.py
import uuid

from sqlmodel import Session, select

from marketplace.models.product import Product


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_for_update(self, session: Session, product_id: uuid.UUID) -> Product | None:
        """
        Re-read a product and lock its row until the transaction ends.

        `populate_existing` makes sure an instance already sitting in the
        identity map is overwritten with the locked row's values.
        """
        stmt = (
            select(Product)
            .where(Product.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return session.exec(stmt).first()

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
        seller_id: uuid.UUID | None = None,
        q: str | None = None,
        category_id: uuid.UUID | None = None,
    ) -> list[Product]:
        stmt = select(Product)
        if only_active:
            stmt = stmt.where(Product.is_active == True)  # noqa: E712
        if seller_id:
            stmt = stmt.where(Product.seller_id == seller_id)
        if q:
            stmt = stmt.where(Product.title.ilike(f"%{q}%"))
        if category_id:
            stmt = stmt.where(Product.category_id == category_id)
        stmt = stmt.order_by(Product.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def save(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def stage(self, session: Session, product: Product) -> Product:
        """
        Add a modified product to the current transaction without committing.
        Used by checkout, which commits once for the whole purchase.
        """
        session.add(product)
        session.flush()
        return product
