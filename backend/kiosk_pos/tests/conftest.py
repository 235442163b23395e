import os

# Must be set before kiosk_pos.core.config is imported
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from kiosk_pos.core.database import get_db
from kiosk_pos.core.security import create_token, hash_password
from kiosk_pos.main import app
from kiosk_pos.models import Category, Kiosk, Product, Sale, User
from kiosk_pos.models.kiosk import Base


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_kiosk(db, slug="centro", tz="America/Argentina/Buenos_Aires"):
    kiosk = Kiosk(name=f"Kiosco {slug}", slug=slug, timezone=tz)
    db.add(kiosk)
    db.commit()
    db.refresh(kiosk)
    return kiosk


def make_user(db, kiosk, email, role):
    user = User(email=email, hashed_password=hash_password("secret"), role=role, kiosk_id=kiosk.id)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_product(db, kiosk, name="Alfajor", price="1000", stock=50, category=None):
    product = Product(
        kiosk_id=kiosk.id,
        name=name,
        price=Decimal(price),
        cost=Decimal("0"),
        stock=stock,
        category_id=category.id if category is not None else None,
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def make_category(db, kiosk, name="Golosinas"):
    category = Category(kiosk_id=kiosk.id, name=name)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def make_sale(db, kiosk, total, at: datetime, payment_method="cash"):
    sale = Sale(kiosk_id=kiosk.id, total=Decimal(total), payment_method=payment_method, created_at=at)
    db.add(sale)
    db.commit()
    return sale


def auth_headers(user, kiosk):
    token = create_token(str(user.id), 30, token_type="access")
    return {"Authorization": f"Bearer {token}", "X-Kiosk-ID": kiosk.slug}


@pytest.fixture()
def kiosk(db):
    return make_kiosk(db)


@pytest.fixture()
def owner(db, kiosk):
    return make_user(db, kiosk, "owner@centro.com", "owner")


@pytest.fixture()
def cashier(db, kiosk):
    return make_user(db, kiosk, "cajero@centro.com", "cashier")


@pytest.fixture()
def owner_headers(owner, kiosk):
    return auth_headers(owner, kiosk)


@pytest.fixture()
def cashier_headers(cashier, kiosk):
    return auth_headers(cashier, kiosk)
