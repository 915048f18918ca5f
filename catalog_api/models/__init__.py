from .id_sequence import IdSequence
from .product import Product
from .product_type import ProductType
from .user import User

__all__ = [
    "IdSequence",
    "Product",
    "ProductType",
    "User",
]
