"""
商品目录服务
商家上架/编辑/删除商品，买家按分类浏览
"""
import json
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pm_core.catalog import CategoryTaxonomy, normalize_category_tokens
from pm_core.database import DatabaseManager
from pm_core.middleware.auth import CurrentUser
from pm_core.models import Product, Vendor
from pm_core.models.base import utcnow
from pm_core.utils.errors import (
    BadRequestError, ForbiddenError, InternalServerError, NotFoundError
)
from .base import BaseService
from .image_storage import ImageStorage, ImageUpload, ImageUploadError

# 与 products 表列类型一致：stock INTEGER, price NUMERIC(18, 2)
MAX_STOCK = 2 ** 31 - 1
MAX_PRICE = Decimal("9999999999999999.99")
PRICE_QUANTUM = Decimal("0.01")


@dataclass
class ProductFields:
    """请求中提交的商品字段（表单原始值）"""
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    stock: Optional[str] = None
    price: Optional[str] = None


class ProductsService(BaseService):
    """商品目录服务"""

    def __init__(
        self,
        taxonomy: CategoryTaxonomy,
        image_storage: ImageStorage,
        db_manager: Optional[DatabaseManager] = None
    ):
        super().__init__(db_manager)
        self.taxonomy = taxonomy
        self.image_storage = image_storage

    # ========== 创建 ==========

    async def create_product(
        self,
        user: CurrentUser,
        vendor_id: int,
        fields: ProductFields,
        images: Sequence[ImageUpload]
    ) -> Dict[str, Any]:
        """商家创建商品

        校验顺序：角色(403) -> 商家存在(404) -> 图片(400) -> 字段(400)
        """
        if not user.is_vendor:
            raise ForbiddenError(
                code="NOT_A_VENDOR",
                detail="Cannot create product, you are not a vendor"
            )

        return await self.execute_with_session(
            self._create_product_tx, vendor_id, fields, images
        )

    async def _create_product_tx(
        self,
        session: AsyncSession,
        vendor_id: int,
        fields: ProductFields,
        images: Sequence[ImageUpload]
    ) -> Dict[str, Any]:
        vendor = await session.get(Vendor, vendor_id)
        if vendor is None:
            raise NotFoundError(code="VENDOR_NOT_FOUND", resource="Vendor")

        if not images:
            raise BadRequestError(code="NO_FILES_UPLOADED", detail="No files uploaded.")

        name = (fields.name or "").strip()
        if not name:
            raise BadRequestError(code="MISSING_NAME", detail="Product name is required")

        price = self._parse_price(fields.price)
        if price is None:
            raise BadRequestError(code="MISSING_PRICE", detail="Product price is required")

        stock = self._parse_stock(fields.stock)
        self._check_category(fields.category, fields.sub_category)

        image_urls = await self._upload(images)

        product = Product(
            name=name,
            description=fields.description,
            category=fields.category or None,
            sub_category=fields.sub_category or None,
            stock=stock or 0,
            price=price,
            image_urls=image_urls,
            vendor_id=vendor.id,
        )
        try:
            session.add(product)
            await session.flush()  # 获取生成的ID

            vendor.add_product(product.id)
            await session.commit()
        except Exception:
            self._log_orphaned_images(image_urls, vendor_id=vendor.id)
            raise

        self.logger.info(
            "Product created",
            product_id=product.id,
            vendor_id=vendor.id,
            images=len(image_urls)
        )
        return product.to_dict()

    # ========== 查询 ==========

    async def get_product(self, product_id: int) -> Dict[str, Any]:
        """查询单个商品（展开商家信息）"""
        return await self.execute_with_session(self._get_product_query, product_id)

    async def _get_product_query(self, session: AsyncSession, product_id: int) -> Dict[str, Any]:
        stmt = (
            select(Product)
            .options(selectinload(Product.vendor))
            .where(Product.id == product_id)
        )
        result = await session.execute(stmt)
        product = result.scalar_one_or_none()

        if product is None:
            raise NotFoundError(code="PRODUCT_NOT_FOUND", resource="Product")

        return self._serialize(product, with_vendor=True)

    async def list_products(
        self,
        categories: Union[None, str, Sequence[str]] = None
    ) -> List[Dict[str, Any]]:
        """按分类查询商品列表

        categories 可以是单个分类名或分类名列表，为空时不过滤；
        子分类会同时启用其父分类；未知分类忽略。
        """
        requested = normalize_category_tokens(categories)
        expansion = self.taxonomy.expand(requested)
        self.logger.debug(
            "Expanded category filter",
            requested=requested,
            main_categories=sorted(expansion.main_categories),
            sub_categories=sorted(expansion.sub_categories)
        )
        return await self.execute_with_session(self._list_products_query, expansion.to_query())

    async def _list_products_query(
        self,
        session: AsyncSession,
        query: Dict[str, List[str]]
    ) -> List[Dict[str, Any]]:
        stmt = select(Product).options(selectinload(Product.vendor))

        # 各字段独立约束
        for field, values in query.items():
            stmt = stmt.where(getattr(Product, field).in_(values))

        stmt = stmt.order_by(Product.id)

        result = await session.execute(stmt)
        return [self._serialize(product, with_vendor=True) for product in result.scalars().all()]

    # ========== 编辑 ==========

    async def edit_product(
        self,
        user: CurrentUser,
        product_id: int,
        fields: ProductFields,
        images: Sequence[ImageUpload] = (),
        existing_urls: Optional[str] = None
    ) -> Dict[str, Any]:
        """商家编辑商品

        未提供（或为空值）的字段保留原值；
        图片 = 客户端保留的旧图片 + 新上传图片，两者都为空时保留原图片。
        """
        if not user.is_vendor:
            raise ForbiddenError(
                code="NOT_A_VENDOR",
                detail="Cannot edit product, you are not a vendor"
            )

        return await self.execute_with_session(
            self._edit_product_tx, product_id, fields, images, existing_urls
        )

    async def _edit_product_tx(
        self,
        session: AsyncSession,
        product_id: int,
        fields: ProductFields,
        images: Sequence[ImageUpload],
        existing_urls: Optional[str]
    ) -> Dict[str, Any]:
        product = await session.get(Product, product_id)
        if product is None:
            raise NotFoundError(code="PRODUCT_NOT_FOUND", resource="Product")

        kept_urls = self._parse_existing_urls(existing_urls)
        stock = self._parse_stock(fields.stock)
        price = self._parse_price(fields.price)
        self._check_category(fields.category, fields.sub_category)

        new_urls = await self._upload(images) if images else []
        image_urls = kept_urls + new_urls

        try:
            product.name = fields.name or product.name
            product.description = fields.description or product.description
            product.category = fields.category or product.category
            product.sub_category = fields.sub_category or product.sub_category
            product.stock = stock or product.stock
            product.price = price or product.price
            product.image_urls = image_urls or product.image_urls
            product.updated_at = utcnow()

            await session.commit()
        except Exception:
            self._log_orphaned_images(new_urls, product_id=product.id)
            raise

        self.logger.info(
            "Product updated",
            product_id=product.id,
            kept_images=len(kept_urls),
            new_images=len(new_urls)
        )
        return product.to_dict()

    # ========== 删除 ==========

    async def delete_product(self, product_id: int, vendor_id: int) -> None:
        """删除商品并从商家商品列表中移除

        商品与商家都存在时两步在同一事务中提交；
        商家不存在时商品删除仍然提交，再返回 404。
        """
        await self.execute_with_session(self._delete_product_tx, product_id, vendor_id)

    async def _delete_product_tx(
        self,
        session: AsyncSession,
        product_id: int,
        vendor_id: int
    ) -> None:
        product = await session.get(Product, product_id)
        if product is None:
            raise NotFoundError(code="PRODUCT_NOT_FOUND", resource="Product")

        await session.delete(product)
        await session.flush()

        vendor = await session.get(Vendor, vendor_id)
        if vendor is None:
            await session.commit()
            self.logger.warning(
                "Product deleted but vendor not found",
                product_id=product_id,
                vendor_id=vendor_id
            )
            raise NotFoundError(code="VENDOR_NOT_FOUND", resource="Vendor")

        vendor.remove_product(product_id)
        await session.commit()

        self.logger.info("Product deleted", product_id=product_id, vendor_id=vendor_id)

    # ========== 辅助方法 ==========

    async def _upload(self, images: Sequence[ImageUpload]) -> List[str]:
        try:
            return await self.image_storage.upload_images(images)
        except ImageUploadError:
            raise InternalServerError(
                code="IMAGE_UPLOAD_FAILED",
                detail="Failed to upload product images"
            )

    def _log_orphaned_images(self, image_urls: List[str], **context: Any) -> None:
        """保存失败时已上传的图片不会被引用，记录下来供人工清理"""
        if image_urls:
            self.logger.error(
                "Product not saved, uploaded images are orphaned",
                image_urls=image_urls,
                **context
            )

    def _check_category(self, category: Optional[str], sub_category: Optional[str]) -> None:
        """分类不强制校验，未知分类只记录警告"""
        for value in (category, sub_category):
            if value and value not in self.taxonomy:
                self.logger.warning("Unknown product category", category=value)

    @staticmethod
    def _parse_price(value: Optional[str]) -> Optional[Decimal]:
        if value is None or str(value).strip() == "":
            return None
        try:
            price = Decimal(str(value).strip())
        except InvalidOperation:
            raise BadRequestError(code="INVALID_PRICE", detail=f"Invalid price: {value}")
        if not price.is_finite() or price < 0:
            raise BadRequestError(code="INVALID_PRICE", detail=f"Invalid price: {value}")
        if price > MAX_PRICE:
            raise BadRequestError(code="INVALID_PRICE", detail=f"Price is too large: {value}")
        # 多余小数位四舍五入到分
        return price.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)

    @staticmethod
    def _parse_stock(value: Optional[str]) -> Optional[int]:
        if value is None or str(value).strip() == "":
            return None
        try:
            stock = int(str(value).strip())
        except ValueError:
            raise BadRequestError(code="INVALID_STOCK", detail=f"Invalid stock: {value}")
        if stock < 0:
            raise BadRequestError(code="INVALID_STOCK", detail=f"Stock cannot be negative: {value}")
        if stock > MAX_STOCK:
            raise BadRequestError(code="INVALID_STOCK", detail=f"Stock is too large: {value}")
        return stock

    @staticmethod
    def _parse_existing_urls(value: Optional[str]) -> List[str]:
        """解析客户端保留的旧图片 URL（JSON 数组字符串）

        JSON 格式错误按内部错误处理（500），结构错误返回 400。
        """
        if not value:
            return []
        urls = json.loads(value)
        if not isinstance(urls, list) or not all(isinstance(url, str) for url in urls):
            raise BadRequestError(
                code="INVALID_EXISTING_URLS",
                detail="existing_urls must be a JSON array of strings"
            )
        return urls

    @staticmethod
    def _serialize(product: Product, with_vendor: bool = False) -> Dict[str, Any]:
        data = product.to_dict()
        if with_vendor:
            data["vendor"] = product.vendor.to_dict() if product.vendor else None
        return data
