"""
PawMart 数据模型包
"""
from .base import Base
from .vendors import Vendor
from .products import Product

__all__ = [
    "Base",
    "Vendor",
    "Product",
]
