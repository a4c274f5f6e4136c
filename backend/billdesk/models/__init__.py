from .tenancy import Account, ApiToken
from .inventory import Product, InventoryLog
from .customers import Customer
from .invoices import Invoice

__all__ = [
    'Account', 'ApiToken',
    'Product', 'InventoryLog',
    'Customer',
    'Invoice',
]
