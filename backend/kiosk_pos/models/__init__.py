from .kiosk import Kiosk
from .user import User
from .product import Product, Category
from .expense import Expense
from .supplier_payment import SupplierPayment
from .cash_session import CashSession, CashMovement, CashSessionStatus, MovementType
from .price_list import PriceList, PriceChangeHistory
from .sale import Sale, SaleItem

__all__ = [
    "Kiosk",
    "User",
    "Product",
    "Category",
    "Expense",
    "SupplierPayment",
    "CashSession",
    "CashMovement",
    "CashSessionStatus",
    "MovementType",
    "PriceList",
    "PriceChangeHistory",
    "Sale",
    "SaleItem",
]
