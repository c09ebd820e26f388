"""
商品图片存储
上传商品图片到 Cloudinary，返回可公开访问的 URL
"""
import asyncio
from dataclasses import dataclass
from io import BytesIO
from typing import List, Optional, Sequence
from uuid import uuid4

import cloudinary
import cloudinary.uploader

from pm_core.config import Settings, get_settings
from pm_core.utils.logger import get_logger

logger = get_logger(__name__)


class ImageUploadError(Exception):
    """图片上传失败"""


@dataclass(frozen=True)
class ImageUpload:
    """待上传的图片"""
    filename: str
    content: bytes
    content_type: Optional[str] = None


class ImageStorage:
    """图片存储接口"""

    async def upload_images(self, images: Sequence[ImageUpload]) -> List[str]:
        """
        上传图片

        Args:
            images: 待上传图片

        Returns:
            与输入顺序一致的图片 URL 列表

        Raises:
            ImageUploadError: 任一图片上传失败
        """
        raise NotImplementedError


class CloudinaryImageStorage(ImageStorage):
    """Cloudinary 图片存储"""

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        folder: str = "products"
    ):
        self.cloud_name = cloud_name
        self.folder = folder
        if cloud_name and api_key and api_secret:
            self.configure(cloud_name, api_key, api_secret)

    def configure(self, cloud_name: str, api_key: str, api_secret: str) -> None:
        """配置 Cloudinary 凭证"""
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True
        )
        self.cloud_name = cloud_name
        logger.info("Cloudinary configured", cloud_name=cloud_name)

    async def upload_images(self, images: Sequence[ImageUpload]) -> List[str]:
        urls = []
        for image in images:
            public_id = f"{self.folder}/{uuid4().hex}"
            try:
                # SDK 为同步调用，放到线程中执行
                result = await asyncio.to_thread(
                    cloudinary.uploader.upload,
                    BytesIO(image.content),
                    public_id=public_id,
                    resource_type="image",
                )
            except Exception as e:
                logger.error("Failed to upload image", filename=image.filename, exc_info=True)
                raise ImageUploadError(f"Failed to upload {image.filename}") from e

            logger.info("Image uploaded", filename=image.filename, public_id=result.get("public_id"))
            urls.append(result["secure_url"])

        return urls


def create_image_storage(settings: Optional[Settings] = None) -> ImageStorage:
    """根据配置创建图片存储"""
    settings = settings or get_settings()
    if not settings.cloudinary_cloud_name:
        logger.warning("Cloudinary is not configured, image uploads will fail")
    return CloudinaryImageStorage(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        folder=settings.product_images_folder,
    )
