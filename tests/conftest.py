"""
Pytest 配置和 fixtures
"""
from typing import AsyncGenerator, List, Sequence

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from pm_core.app import create_app
from pm_core.catalog import CategoryTaxonomy
from pm_core.config import get_settings
from pm_core.database import DatabaseManager
from pm_core.middleware.auth import CurrentUser, create_access_token
from pm_core.models import Product, Vendor
from pm_core.services import (
    ImageStorage, ImageUpload, ImageUploadError, ProductFields, ProductsService
)


class FakeImageStorage(ImageStorage):
    """内存图片存储，记录上传内容"""

    def __init__(self):
        self.uploaded: List[ImageUpload] = []
        self.fail = False

    async def upload_images(self, images: Sequence[ImageUpload]) -> List[str]:
        if self.fail:
            raise ImageUploadError("storage unavailable")
        self.uploaded.extend(images)
        return [f"https://images.test/products/{image.filename}" for image in images]


@pytest.fixture
def taxonomy() -> CategoryTaxonomy:
    return CategoryTaxonomy()


@pytest.fixture
def image_storage() -> FakeImageStorage:
    return FakeImageStorage()


@pytest_asyncio.fixture
async def db_manager() -> AsyncGenerator[DatabaseManager, None]:
    """内存 SQLite 数据库"""
    manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
    await manager.create_tables()
    yield manager
    await manager.drop_tables()
    await manager.close()


@pytest.fixture
def products_service(taxonomy, image_storage, db_manager) -> ProductsService:
    return ProductsService(taxonomy=taxonomy, image_storage=image_storage, db_manager=db_manager)


@pytest.fixture
def vendor_user() -> CurrentUser:
    return CurrentUser(id=1, role="vendor")


@pytest.fixture
def shopper_user() -> CurrentUser:
    return CurrentUser(id=2, role="shopper")


@pytest_asyncio.fixture
async def vendor(db_manager) -> Vendor:
    """示例商家"""
    async with db_manager.get_session() as session:
        vendor = Vendor(name="Whisker Goods", user_id=1, product_ids=[])
        session.add(vendor)
        await session.commit()
        return vendor


@pytest.fixture
def sample_image() -> ImageUpload:
    return ImageUpload(filename="hat.png", content=b"\x89PNG fake", content_type="image/png")


@pytest.fixture
def make_product(products_service, vendor_user, vendor, sample_image):
    """通过服务创建商品的工厂"""
    async def _make(
        name: str = "Tiny Top Hat",
        category: str = "Clothes",
        sub_category: str = "Hats",
        stock: str = "5",
        price: str = "12.50",
        vendor_id: int = None
    ):
        return await products_service.create_product(
            user=vendor_user,
            vendor_id=vendor_id or vendor.id,
            fields=ProductFields(
                name=name,
                description=f"{name} for cats",
                category=category,
                sub_category=sub_category,
                stock=stock,
                price=price
            ),
            images=[sample_image]
        )

    return _make


async def count_products(db_manager: DatabaseManager) -> int:
    async with db_manager.get_session() as session:
        return await session.scalar(select(func.count(Product.id)))


async def load_vendor(db_manager: DatabaseManager, vendor_id: int) -> Vendor:
    async with db_manager.get_session() as session:
        return await session.get(Vendor, vendor_id)


@pytest.fixture
def api_prefix() -> str:
    return get_settings().api_prefix


@pytest_asyncio.fixture
async def client(taxonomy, image_storage, db_manager) -> AsyncGenerator[AsyncClient, None]:
    """不经过 lifespan 的 API 客户端"""
    app = create_app(taxonomy=taxonomy, image_storage=image_storage, db_manager=db_manager)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def auth_headers(user_id: int = 1, role: str = "vendor") -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}
