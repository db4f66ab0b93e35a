from .auth import User, SessionToken, ROLES, ROLE_ADMIN, ROLE_CASHIER
from .catalog import Product, Category, Brand, Unit, PaperSize
from .customers import Customer
from .promotions import PromoCode, DISCOUNT_TYPES, DISCOUNT_PERCENTAGE, DISCOUNT_FIXED
from .sales import Sale, SaleItem, SaleStatus
from .expenses import Expense

__all__ = [
    'User', 'SessionToken', 'ROLES', 'ROLE_ADMIN', 'ROLE_CASHIER',
    'Product', 'Category', 'Brand', 'Unit', 'PaperSize',
    'Customer',
    'PromoCode', 'DISCOUNT_TYPES', 'DISCOUNT_PERCENTAGE', 'DISCOUNT_FIXED',
    'Sale', 'SaleItem', 'SaleStatus',
    'Expense',
]
