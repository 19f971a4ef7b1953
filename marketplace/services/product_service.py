# marketplace/services/product_service.py
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from marketplace.core.inventory import (
    check_variant_setup,
    normalize_variant_combinations,
    sync_product_stock,
)
from marketplace.models.product import Product
from marketplace.models.user import User
from marketplace.repositories.category_repo import CategoryRepository
from marketplace.repositories.product_repo import ProductRepository
from marketplace.schemas.product import ProductCreate, ProductUpdate


class ProductService:
    """
    Business logic for seller listings.

    Responsibilities:
      - normalize variant combinations and keep aggregate stock in sync
      - enforce listing ownership (seller edits only their own products)
      - soft delete, so past orders keep pointing at a real row
    """

    def __init__(self, repo: ProductRepository, category_repo: CategoryRepository):
        self.repo = repo
        self.category_repo = category_repo

    # ----- Helpers -----

    @staticmethod
    def _dump_variants(groups) -> list[dict]:
        return [group.model_dump() for group in groups]

    @staticmethod
    def _ensure_variant_setup(variants: list[dict], combinations: list[dict]) -> None:
        problem = check_variant_setup(variants, combinations)
        if problem:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=problem,
            )

    def _ensure_category(self, session: Session, category_id: uuid.UUID | None) -> None:
        if category_id and not self.category_repo.get_by_id(session, category_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Category not found",
            )

    def _get_owned_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        user: User,
    ) -> Product:
        product = self.get_product(session, product_id, only_active=False)
        if product.seller_id != user.id and user.role != "admin":
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to edit this product",
            )
        return product

    # ----- Queries -----

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        seller_id: uuid.UUID | None = None,
        q: str | None = None,
        category_id: uuid.UUID | None = None,
    ) -> list[Product]:
        return self.repo.list_products(
            session, skip=skip, limit=limit, seller_id=seller_id, q=q, category_id=category_id
        )

    def list_my_listings(
        self,
        session: Session,
        seller: User,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Product]:
        return self.repo.list_products(
            session, skip=skip, limit=limit, only_active=False, seller_id=seller.id
        )

    def get_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        only_active: bool = True,
    ) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product or (only_active and not product.is_active):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    # ----- Commands -----

    def create_product(
        self,
        session: Session,
        seller: User,
        payload: ProductCreate,
    ) -> Product:
        variants = self._dump_variants(payload.variants)
        combinations = normalize_variant_combinations(payload.variant_combinations)
        self._ensure_variant_setup(variants, combinations)
        self._ensure_category(session, payload.category_id)

        product = Product(
            seller_id=seller.id,
            title=payload.title,
            description=payload.description,
            image_url=payload.image_url,
            price=payload.price,
            quantity=payload.quantity,
            stock=payload.quantity,
            variants=variants,
            variant_combinations=combinations,
            category_id=payload.category_id,
        )
        sync_product_stock(product)
        return self.repo.save(session, product)

    def update_product(
        self,
        session: Session,
        user: User,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update.

        When `variant_combinations` is supplied, stock is recomputed from it
        and any `quantity` in the same payload is ignored.
        """
        product = self._get_owned_product(session, product_id, user)

        variants = (
            self._dump_variants(payload.variants)
            if payload.variants is not None
            else product.variants
        )
        combinations = (
            normalize_variant_combinations(payload.variant_combinations)
            if payload.variant_combinations is not None
            else product.variant_combinations
        )
        self._ensure_variant_setup(variants, combinations)
        self._ensure_category(session, payload.category_id)

        if payload.title is not None:
            product.title = payload.title
        if payload.description is not None:
            product.description = payload.description
        if payload.image_url is not None:
            product.image_url = payload.image_url
        if payload.price is not None:
            product.price = payload.price
        if payload.is_active is not None:
            product.is_active = payload.is_active
        if payload.category_id is not None:
            product.category_id = payload.category_id
        product.variants = variants

        if payload.variant_combinations is not None:
            product.variant_combinations = combinations
            sync_product_stock(product)
        elif payload.quantity is not None and not combinations:
            product.quantity = payload.quantity
            product.stock = payload.quantity

        product.updated_at = datetime.now(timezone.utc)
        return self.repo.save(session, product)

    def delete_product(
        self,
        session: Session,
        user: User,
        product_id: uuid.UUID,
    ) -> None:
        """
        Hide a listing. Orders reference products by id, so rows are kept.
        """
        product = self._get_owned_product(session, product_id, user)
        product.is_active = False
        product.updated_at = datetime.now(timezone.utc)
        self.repo.save(session, product)
