from .auth import User, SessionToken, ROLES, ROLE_CUSTOMER, ROLE_STAFF, ROLE_ADMIN
from .catalog import Product, DeliveryZone
from .cart import CartItem
from .orders import Order, OrderItem
from .settings import StoreSettings

__all__ = [
    'User', 'SessionToken', 'ROLES', 'ROLE_CUSTOMER', 'ROLE_STAFF', 'ROLE_ADMIN',
    'Product', 'DeliveryZone',
    'CartItem',
    'Order', 'OrderItem',
    'StoreSettings',
]
