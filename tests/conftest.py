import uuid

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from bakery.core.config import Settings
from bakery.database import enable_sqlite_foreign_keys
from bakery.main import create_app
from bakery.models.coupon import Coupon
from bakery.models.product import Product, ProductUnitOption
from bakery.models.user import User

JWT_SECRET = "test-secret"


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        SUPABASE_JWT_SECRET=JWT_SECRET,
        DELIVERY_FEE=50.0,
    )


@pytest.fixture
def engine():
    """In-memory SQLite DB for fast testing."""
    _engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(_engine)
    SQLModel.metadata.create_all(_engine)
    yield _engine
    SQLModel.metadata.drop_all(_engine)


@pytest.fixture
def db_session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def app(settings, engine):
    return create_app(settings, engine)


@pytest.fixture
def client(app):
    return TestClient(app)


# --- auth helpers ---


def make_token(user_id: uuid.UUID, email: str) -> str:
    return jwt.encode({"sub": str(user_id), "email": email}, JWT_SECRET, algorithm="HS256")


def auth_headers(user: User, cart_id=None) -> dict:
    headers = {"Authorization": f"Bearer {make_token(user.id, user.email)}"}
    if cart_id is not None:
        headers["x-cart-id"] = str(cart_id)
    return headers


@pytest.fixture
def customer(db_session):
    user = User(id=uuid.uuid4(), email="priya@example.com", name="priya")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def admin(db_session):
    user = User(id=uuid.uuid4(), email="owner@example.com", name="owner", role="admin")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


# --- catalog factories ---


@pytest.fixture
def make_product(db_session):
    def _make(name="Butter Croissant", **fields):
        fields.setdefault("price_per_pc", 100.0)
        product = Product(
            name=name,
            slug=fields.pop("slug", name.lower().replace(" ", "-")),
            **fields,
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _make


@pytest.fixture
def make_option(db_session):
    def _make(product, label, price, grams=None, position=0):
        option = ProductUnitOption(
            product_id=product.id,
            label=label,
            price=price,
            grams=grams,
            position=position,
        )
        db_session.add(option)
        db_session.commit()
        db_session.refresh(option)
        return option

    return _make


@pytest.fixture
def make_coupon(db_session):
    def _make(code, **fields):
        coupon = Coupon(code=code, **fields)
        db_session.add(coupon)
        db_session.commit()
        db_session.refresh(coupon)
        return coupon

    return _make
