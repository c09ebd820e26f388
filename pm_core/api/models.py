"""
API 响应模型
"""
from typing import Any, Dict, List, Optional, Generic, TypeVar
from pydantic import BaseModel, Field

T = TypeVar('T')


class ApiResponse(BaseModel, Generic[T]):
    """统一 API 响应格式"""
    ok: bool = Field(description="操作是否成功")
    data: Optional[T] = Field(default=None, description="响应数据")
    error: Optional[Dict[str, Any]] = Field(default=None, description="错误信息（RFC7807 Problem Details）")
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="元数据")

    @classmethod
    def success(cls, data: T, metadata: Optional[Dict[str, Any]] = None) -> "ApiResponse[T]":
        """创建成功响应"""
        return cls(ok=True, data=data, metadata=metadata)


class VendorResponse(BaseModel):
    """商家信息"""
    id: int
    name: str
    user_id: Optional[int] = None
    product_ids: List[int] = Field(default_factory=list)
    created_at: str
    updated_at: str


class ProductResponse(BaseModel):
    """商品响应"""
    id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    stock: int
    price: str  # Decimal 序列化为字符串
    image_urls: List[str] = Field(default_factory=list)
    vendor_id: int
    vendor: Optional[VendorResponse] = Field(default=None, description="商家信息（详情和列表接口展开）")
    created_at: str
    updated_at: str


class CategoryResponse(BaseModel):
    """主分类及其子分类"""
    name: str
    subcategories: List[str]
