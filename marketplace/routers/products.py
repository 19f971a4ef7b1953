# marketplace/routers/products.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from marketplace.core.auth import require_seller
from marketplace.database import get_session
from marketplace.models.user import User
from marketplace.repositories.category_repo import CategoryRepository
from marketplace.repositories.product_repo import ProductRepository
from marketplace.schemas.product import ProductCreate, ProductRead, ProductUpdate
from marketplace.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["Products"])

repo = ProductRepository()
service = ProductService(repo, CategoryRepository())


# -------- Seller endpoints --------
# Declared before "/{product_id}" so "seller" is not parsed as an id.


@router.get("/seller/mine", response_model=list[ProductRead])
def list_my_listings(
    session: Session = Depends(get_session),
    seller: User = Depends(require_seller),
    skip: int = 0,
    limit: int = 50,
):
    """
    The current seller's listings, including inactive ones.
    """
    return service.list_my_listings(session, seller, skip, limit)


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
    seller: User = Depends(require_seller),
):
    return service.create_product(session, seller, payload)


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
    seller: User = Depends(require_seller),
):
    """
    Update a listing (owner or admin).
    """
    return service.update_product(session, seller, product_id, payload)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
    seller: User = Depends(require_seller),
):
    """
    Soft-delete a listing (owner or admin).
    """
    service.delete_product(session, seller, product_id)
    return None


# -------- Public endpoints --------


@router.get("", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
    seller_id: uuid.UUID | None = None,
    q: str | None = None,
    category_id: uuid.UUID | None = None,
):
    """
    Browse active listings, optionally by seller, category or title search.
    """
    return service.list_products(
        session, skip=skip, limit=limit, seller_id=seller_id, q=q, category_id=category_id
    )


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.get_product(session, product_id)
