"""
PawMart 核心服务模块
"""
from .base import BaseService
from .image_storage import (
    CloudinaryImageStorage,
    ImageStorage,
    ImageUpload,
    ImageUploadError,
    create_image_storage,
)
from .products import ProductFields, ProductsService

__all__ = [
    "BaseService",
    "CloudinaryImageStorage",
    "ImageStorage",
    "ImageUpload",
    "ImageUploadError",
    "create_image_storage",
    "ProductFields",
    "ProductsService",
]
