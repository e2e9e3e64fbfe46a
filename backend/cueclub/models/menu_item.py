"""
菜单商品模型
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Index
from sqlalchemy.sql import func
from cueclub.db.database import Base


class MenuItem(Base):
    """菜单商品表"""
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True, comment="名称")
    category = Column(String(50), nullable=False, default="", comment="分类")
    price = Column(Numeric(10, 2), nullable=False, comment="单价")
    stock = Column(Integer, nullable=False, default=0, comment="库存（允许负库存）")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    __table_args__ = (
        Index("idx_menu_items_name", "name"),
    )
