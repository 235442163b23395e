from decimal import Decimal

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from kiosk_pos.core.errors import NotFoundError, ValidationError
from kiosk_pos.models import PriceChangeHistory, Product
from kiosk_pos.services import bulk_price_service

from conftest import make_category, make_product


@pytest.mark.parametrize("price,pct,expected", [
    ("999", "10", "1099"),
    ("100", "10", "110"),
    ("1000", "-5", "950"),
    ("333.33", "3", "344"),
])
def test_increased_price_rounds_up(price, pct, expected):
    assert bulk_price_service.increased_price(Decimal(price), Decimal(pct)) == Decimal(expected)


def test_bulk_increase_by_products_and_revert(db, kiosk, owner):
    a = make_product(db, kiosk, name="Agua", price="800")
    b = make_product(db, kiosk, name="Alfajor", price="999")
    untouched = make_product(db, kiosk, name="Chicle", price="400")

    result = bulk_price_service.bulk_increase(db, kiosk.id, owner.id, "10", product_ids=[a.id, b.id])
    assert result.status == "ok"
    assert result.count == 2
    for p in (a, b, untouched):
        db.refresh(p)
    assert (a.price, b.price, untouched.price) == (Decimal("880"), Decimal("1099"), Decimal("400"))

    history = bulk_price_service.get_price_history(db, kiosk.id)
    assert history[0].action_type == "BULK_MANUAL"
    assert history[0].description == "Aumento Manual 10% (2 productos)"

    reverted = bulk_price_service.revert_price_change(db, kiosk.id, owner.id, result.history_id)
    assert reverted.count == 2
    for p in (a, b):
        db.refresh(p)
    assert (a.price, b.price) == (Decimal("800"), Decimal("999"))

    latest = bulk_price_service.get_price_history(db, kiosk.id)[0]
    assert latest.action_type == "REVERT"
    entry = next(e for e in latest.affected_products if e["id"] == b.id)
    assert (entry["old_price"], entry["new_price"]) == (1099.0, 999.0)


def test_bulk_increase_by_category(db, kiosk, owner):
    drinks = make_category(db, kiosk, "Bebidas")
    cola = make_product(db, kiosk, name="Cola", price="2100", category=drinks)
    snack = make_product(db, kiosk, name="Papas", price="1500")

    result = bulk_price_service.bulk_increase(db, kiosk.id, owner.id, Decimal("5"), category_id=drinks.id)
    assert result.count == 1
    db.refresh(cola)
    db.refresh(snack)
    assert cola.price == Decimal("2205")
    assert snack.price == Decimal("1500")
    assert bulk_price_service.get_price_history(db, kiosk.id)[0].description == "Aumento 5% a categoría Bebidas"


@pytest.mark.parametrize("kwargs,error", [
    ({"percentage": "0", "product_ids": [1]}, ValidationError),
    ({"percentage": "-100", "product_ids": [1]}, ValidationError),
    ({"percentage": "10"}, ValidationError),
    ({"percentage": "10", "category_id": 999}, NotFoundError),
    ({"percentage": "10", "product_ids": [999]}, NotFoundError),
])
def test_bulk_increase_rejects(db, kiosk, owner, kwargs, error):
    make_product(db, kiosk)
    with pytest.raises(error):
        bulk_price_service.bulk_increase(db, kiosk.id, owner.id, **kwargs)


def test_history_failure_keeps_new_prices(db, kiosk, owner):
    product = make_product(db, kiosk, price="1000")

    def fail_insert(mapper, connection, target):
        raise OperationalError("INSERT INTO price_changes_history", {}, Exception("database is locked"))

    event.listen(PriceChangeHistory, "before_insert", fail_insert)
    try:
        result = bulk_price_service.bulk_increase(db, kiosk.id, owner.id, "20", product_ids=[product.id])
    finally:
        event.remove(PriceChangeHistory, "before_insert", fail_insert)

    assert result.status == "partial"
    assert result.history_id is None
    assert result.warning
    assert db.get(Product, product.id).price == Decimal("1200")
    assert db.query(PriceChangeHistory).count() == 0


def test_bulk_price_route_is_admin_only(client, db, kiosk, owner_headers, cashier_headers):
    product = make_product(db, kiosk, price="500")
    payload = {'percentage': '10', 'product_ids': [product.id]}

    r = client.post('/products/bulk-price', json=payload, headers=cashier_headers)
    assert r.status_code == 403

    r = client.post('/products/bulk-price', json=payload, headers=owner_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body == {'status': 'ok', 'updated_count': 1, 'history_id': body['history_id'], 'warning': None}

    r = client.post(f"/products/price-history/{body['history_id']}/revert", headers=owner_headers)
    assert r.status_code == 200
    assert Decimal(client.get(f'/products/{product.id}', headers=cashier_headers).json()['price']) == Decimal('500')

    history = client.get('/products/price-history', headers=cashier_headers).json()
    assert [h['action_type'] for h in history] == ['REVERT', 'BULK_MANUAL']
