"""
台桌模型
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Index
from sqlalchemy.sql import func
from cueclub.db.database import Base


class ClubTable(Base):
    """台桌表"""
    __tablename__ = "tables"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True, comment="名称")
    category = Column(String(30), nullable=False, default="Standard", comment="类型：American Pool, Mini Snooker, Standard")
    rate = Column(Numeric(10, 2), nullable=False, default=0, comment="每小时费用")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    __table_args__ = (
        Index("idx_tables_name", "name"),
    )
