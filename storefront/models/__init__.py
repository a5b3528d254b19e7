# Models
from .user import User, ApiToken
from .product import Product, ProductVariant, VariantOption
from .cart import Cart, CartItem
from .order import Order, OrderItem, OrderEvent
from .payment import Payment
from .contact_message import ContactMessage

__all__ = [
    "User",
    "ApiToken",
    "Product",
    "ProductVariant",
    "VariantOption",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderEvent",
    "Payment",
    "ContactMessage",
]
