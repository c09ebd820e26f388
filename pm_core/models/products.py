"""
商品数据模型
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    BigInteger, String, Text, Integer, Numeric, JSON, DateTime,
    ForeignKey, CheckConstraint, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, BigIntPK, utcnow
from .vendors import Vendor


class Product(Base):
    """商品表"""
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, comment="商品ID")

    name: Mapped[str] = mapped_column(String(300), nullable=False, comment="商品名称")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="商品描述")

    # 分类（期望与分类表一致，但不强制）
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, comment="主分类")
    sub_category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, comment="子分类")

    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0, comment="库存")
    price: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False, comment="价格")

    image_urls: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
        comment="图片URL列表"
    )

    vendor_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
        comment="商家ID"
    )
    # 异步会话中需显式 selectinload
    vendor: Mapped[Vendor] = relationship(Vendor)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        comment="创建时间"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        comment="最后更新时间"
    )

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        Index('ix_products_category', 'category'),
        Index('ix_products_sub_category', 'sub_category'),
        Index('ix_products_vendor', 'vendor_id'),
    )
