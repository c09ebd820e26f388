"""
商家数据模型
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import BigInteger, String, JSON, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, BigIntPK, utcnow


class Vendor(Base):
    """商家表"""
    __tablename__ = "vendors"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, comment="商家ID")

    name: Mapped[str] = mapped_column(String(200), nullable=False, comment="商家名称")
    user_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
        comment="所属用户ID"
    )

    # 商家商品列表（按上架顺序），与 products.vendor_id 冗余
    product_ids: Mapped[List[int]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
        comment="商品ID列表"
    )

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
        Index('ix_vendors_user', 'user_id'),
    )

    def add_product(self, product_id: int) -> None:
        """追加商品ID（重新赋值以触发 JSON 列变更检测）"""
        self.product_ids = [*(self.product_ids or []), product_id]
        self.updated_at = utcnow()

    def remove_product(self, product_id: int) -> None:
        """移除商品ID"""
        self.product_ids = [pid for pid in (self.product_ids or []) if pid != product_id]
        self.updated_at = utcnow()
