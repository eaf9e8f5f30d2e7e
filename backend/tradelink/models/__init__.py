from .business import Business, Customer
from .inventory import InventoryItem
from .cart import Cart, CartItem
from .orders import DraftOrder, DraftOrderLine, Sale, SaleLine, Purchase, PurchaseLine
from .notifications import Notification
from .pricing import PersonalizedPrice
from .auth import SessionToken
from .invoices import Invoice

__all__ = [
    'Business', 'Customer',
    'InventoryItem',
    'Cart', 'CartItem',
    'DraftOrder', 'DraftOrderLine', 'Sale', 'SaleLine', 'Purchase', 'PurchaseLine',
    'Notification',
    'PersonalizedPrice',
    'SessionToken',
    'Invoice',
]
