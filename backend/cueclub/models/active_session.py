"""
台桌进行中会话模型
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from cueclub.db.database import Base


class ActiveSession(Base):
    """进行中的台桌会话表（每张台桌最多一条，结算后删除）"""
    __tablename__ = "active_sessions"

    table_id = Column(Integer, ForeignKey("tables.id"), primary_key=True, comment="台桌ID")
    status = Column(String(20), nullable=False, default="idle", comment="状态：idle, running, paused, stopped")
    start_time = Column(DateTime(timezone=True), nullable=True, comment="计时基准时间（停止后继续计时会重新推算）")
    opened_at = Column(DateTime(timezone=True), nullable=True, comment="首次开台时间")
    elapsed_seconds = Column(Integer, nullable=False, default=0, comment="已计时秒数（非计时状态下冻结）")
    total_pause_duration = Column(Integer, nullable=False, default=0, comment="累计暂停秒数")
    pause_time = Column(DateTime(timezone=True), nullable=True, comment="最近一次暂停时间")
    items = Column(JSON, nullable=False, default=list, comment="点单明细")
    customer_name = Column(String(100), nullable=False, comment="顾客名称")
    member_id = Column(Integer, ForeignKey("members.id"), nullable=True, comment="关联会员ID")
    version = Column(Integer, nullable=False, comment="乐观锁版本号")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False, comment="更新时间")

    __mapper_args__ = {"version_id_col": version}
