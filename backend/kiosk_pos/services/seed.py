from decimal import Decimal

from sqlalchemy.orm import Session

from kiosk_pos.core.security import hash_password
from kiosk_pos.models.kiosk import Kiosk
from kiosk_pos.models.price_list import PriceList
from kiosk_pos.models.product import Category, Product
from kiosk_pos.models.user import User


DEMO_PRODUCTS = [
    # (categoría, nombre, precio, costo, stock)
    ("Bebidas", "Agua mineral 500ml", "800", "450", 48),
    ("Bebidas", "Gaseosa cola 1.5L", "2100", "1300", 24),
    ("Golosinas", "Alfajor triple", "950", "520", 60),
    ("Golosinas", "Chicles menta", "400", "180", 100),
    ("Cigarrillos", "Cigarrillos box 20", "3500", "2900", 30),
]


def seed_demo(db: Session):
    if db.query(Kiosk).filter(Kiosk.slug == 'demo').first():
        return
    kiosk = Kiosk(name='Kiosco Demo', slug='demo')
    db.add(kiosk)
    db.flush()
    db.add(User(email='owner@demo.com', hashed_password=hash_password('secret123'), role='owner', kiosk_id=kiosk.id))
    db.add(User(email='cajero@demo.com', hashed_password=hash_password('secret123'), role='cashier', kiosk_id=kiosk.id))

    categories = {}
    for category_name, name, price, cost, stock in DEMO_PRODUCTS:
        if category_name not in categories:
            categories[category_name] = Category(kiosk_id=kiosk.id, name=category_name)
            db.add(categories[category_name])
            db.flush()
        db.add(Product(
            kiosk_id=kiosk.id,
            name=name,
            price=Decimal(price),
            cost=Decimal(cost),
            stock=stock,
            category_id=categories[category_name].id,
        ))

    db.add(PriceList(
        kiosk_id=kiosk.id, name='Lista Base', adjustment_percentage=Decimal("0"),
        rounding_rule='none', is_active=True, priority=0,
    ))
    # Recargo nocturno viernes y sábado, sin tocar cigarrillos
    db.add(PriceList(
        kiosk_id=kiosk.id, name='Nocturno', adjustment_percentage=Decimal("15"),
        rounding_rule='nearest_10', is_active=True, priority=10,
        schedule=[{"day": 5, "start": "21:00", "end": "23:59"}, {"day": 6, "start": "21:00", "end": "23:59"}],
        excluded_category_ids=[categories["Cigarrillos"].id],
    ))
    db.commit()
