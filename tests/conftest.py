import os
import uuid
from datetime import datetime, timedelta, timezone

# Settings are read at import time; point them at throwaway values first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SUPABASE_JWT_SECRET"] = "test-secret"

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from marketplace.core.inventory import normalize_variant_combinations, sync_product_stock
from marketplace.database import get_session
from marketplace.main import app
from marketplace.models.product import Product
from marketplace.models.user import User

API = "/api/v1"


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def client(session: Session):
    app.dependency_overrides[get_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(user: User) -> str:
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return jwt.encode(claims, "test-secret", algorithm="HS256")


def auth(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user)}"}


@pytest.fixture
def make_user(session: Session):
    def factory(role: str = "buyer", name: str | None = None) -> User:
        user_id = uuid.uuid4()
        user = User(
            id=user_id,
            email=f"{role}-{user_id.hex[:8]}@gmail.com",
            name=name or role,
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return factory


@pytest.fixture
def buyer(make_user) -> User:
    return make_user("buyer")


@pytest.fixture
def seller(make_user) -> User:
    return make_user("seller")


@pytest.fixture
def admin(make_user) -> User:
    return make_user("admin")


@pytest.fixture
def make_product(session: Session):
    def factory(
        seller: User,
        title: str = "Widget",
        price: float = 10.0,
        quantity: int = 5,
        variants: list[dict] | None = None,
        combinations: list[dict] | None = None,
        is_active: bool = True,
    ) -> Product:
        product = Product(
            seller_id=seller.id,
            title=title,
            price=price,
            quantity=quantity,
            stock=quantity,
            variants=variants or [],
            variant_combinations=normalize_variant_combinations(combinations),
            is_active=is_active,
        )
        sync_product_stock(product)
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return factory


@pytest.fixture
def shirt(seller, make_product) -> Product:
    """Two sizes, each with its own stock; L is priced higher."""
    return make_product(
        seller,
        title="Shirt",
        price=20.0,
        variants=[
            {"name": "Size", "options": [{"value": "M", "sku": "SH-M"}, {"value": "L", "sku": "SH-L"}]},
        ],
        combinations=[
            {"selections": [{"name": "Size", "value": "M"}], "quantity": 3, "sku": "SH-M"},
            {"selections": [{"name": "Size", "value": "L"}], "quantity": 1, "price": 22.5},
        ],
    )
