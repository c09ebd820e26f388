"""
PawMart API 路由模块
"""

from fastapi import APIRouter

from .categories import router as categories_router
from .products import router as products_router

# 创建主路由器
api_router = APIRouter()

api_router.include_router(products_router, prefix="/products", tags=["Products"])
api_router.include_router(categories_router, prefix="/categories", tags=["Categories"])

__all__ = ["api_router"]
