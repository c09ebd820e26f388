"""create vendors and products

Revision ID: pm_001
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'pm_001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'vendors',
        sa.Column('id', sa.BigInteger(), primary_key=True, comment='商家ID'),
        sa.Column('name', sa.String(length=200), nullable=False, comment='商家名称'),
        sa.Column('user_id', sa.BigInteger(), nullable=True, comment='所属用户ID'),
        sa.Column('product_ids', sa.JSON(), nullable=False, comment='商品ID列表'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='最后更新时间'),
    )
    op.create_index('ix_vendors_user', 'vendors', ['user_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.BigInteger(), primary_key=True, comment='商品ID'),
        sa.Column('name', sa.String(length=300), nullable=False, comment='商品名称'),
        sa.Column('description', sa.Text(), nullable=True, comment='商品描述'),
        sa.Column('category', sa.String(length=100), nullable=True, comment='主分类'),
        sa.Column('sub_category', sa.String(length=100), nullable=True, comment='子分类'),
        sa.Column('stock', sa.Integer(), nullable=False, comment='库存'),
        sa.Column('price', sa.Numeric(18, 2), nullable=False, comment='价格'),
        sa.Column('image_urls', sa.JSON(), nullable=False, comment='图片URL列表'),
        sa.Column(
            'vendor_id',
            sa.BigInteger(),
            sa.ForeignKey('vendors.id', ondelete='CASCADE'),
            nullable=False,
            comment='商家ID'
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='最后更新时间'),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sa.CheckConstraint('price >= 0', name='ck_products_price_non_negative'),
    )
    op.create_index('ix_products_category', 'products', ['category'])
    op.create_index('ix_products_sub_category', 'products', ['sub_category'])
    op.create_index('ix_products_vendor', 'products', ['vendor_id'])


def downgrade() -> None:
    op.drop_index('ix_products_vendor', table_name='products')
    op.drop_index('ix_products_sub_category', table_name='products')
    op.drop_index('ix_products_category', table_name='products')
    op.drop_table('products')

    op.drop_index('ix_vendors_user', table_name='vendors')
    op.drop_table('vendors')
