# marketplace/routers/categories.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from marketplace.core.auth import require_admin
from marketplace.database import get_session
from marketplace.repositories.category_repo import CategoryRepository
from marketplace.schemas.category import CategoryCreate, CategoryPage, CategoryRead, CategoryUpdate
from marketplace.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])

repo = CategoryRepository()
service = CategoryService(repo)


# -------- Admin endpoints --------
# "/admin" is declared before "/{category_id}".


@router.get(
    "/admin",
    response_model=CategoryPage,
    dependencies=[Depends(require_admin)],
)
def search_categories(
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: Session = Depends(get_session),
):
    """
    Paginated category management list, searchable by name or slug.
    """
    return service.search_categories(session, search, page, limit)


@router.post(
    "",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
):
    return service.create_category(session, payload)


@router.patch(
    "/{category_id}",
    response_model=CategoryRead,
    dependencies=[Depends(require_admin)],
)
def update_category(
    category_id: uuid.UUID,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
):
    return service.update_category(session, category_id, payload)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_category(
    category_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    service.delete_category(session, category_id)
    return None


# -------- Public endpoints --------


@router.get("", response_model=list[CategoryRead])
def list_categories(session: Session = Depends(get_session)):
    """
    All categories, alphabetically.
    """
    return service.list_categories(session)


@router.get("/{category_id}", response_model=CategoryRead)
def get_category(
    category_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.get_category(session, category_id)
