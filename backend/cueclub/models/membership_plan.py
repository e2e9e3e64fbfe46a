"""
会员套餐模型
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from cueclub.db.database import Base


class MembershipPlan(Base):
    """会员套餐表"""
    __tablename__ = "membership_plans"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="名称")
    description = Column(String(500), comment="说明")
    price = Column(Numeric(10, 2), nullable=False, default=0, comment="价格")
    total_hours = Column(Numeric(10, 4), nullable=False, comment="总时长（小时）")
    color = Column(String(20), comment="显示颜色")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")

    # 关系
    members = relationship("Member", back_populates="plan")
