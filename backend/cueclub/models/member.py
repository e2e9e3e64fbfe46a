"""
会员模型
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from cueclub.db.database import Base


class Member(Base):
    """会员表"""
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True, comment="姓名")
    plan_id = Column(Integer, ForeignKey("membership_plans.id"), nullable=False, comment="套餐ID")
    remaining_hours = Column(Numeric(10, 4), nullable=False, default=0, comment="剩余时长（小时）")
    mobile_number = Column(String(20), index=True, comment="手机号")
    validity_date = Column(DateTime(timezone=True), nullable=True, comment="有效期至")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    # 关系
    plan = relationship("MembershipPlan", back_populates="members")

    __table_args__ = (
        Index("idx_members_name", "name"),
        Index("idx_members_mobile_number", "mobile_number"),
    )
