from .auth import User, SessionToken, ROLE_ADMIN, ROLE_CASHIER, ROLES
from .inventory import Product, InventoryHistoryEntry, compute_profit_margin, cents_to_decimal
from .sales import Sale, SaleItem, SALE_STATUS_COMPLETED, DEFAULT_PAYMENT_METHOD

__all__ = [
    'User', 'SessionToken', 'ROLE_ADMIN', 'ROLE_CASHIER', 'ROLES',
    'Product', 'InventoryHistoryEntry', 'compute_profit_margin', 'cents_to_decimal',
    'Sale', 'SaleItem', 'SALE_STATUS_COMPLETED', 'DEFAULT_PAYMENT_METHOD',
]
