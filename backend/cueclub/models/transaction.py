"""
结算流水模型
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, JSON, Index
from sqlalchemy.sql import func
from cueclub.db.database import Base


class Transaction(Base):
    """结算流水表（只增不改）"""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    table_id = Column(Integer, nullable=False, index=True, comment="台桌ID")
    table_name = Column(String(100), nullable=False, comment="台桌名称")
    start_time = Column(DateTime(timezone=True), nullable=True, comment="首次开台时间")
    end_time = Column(DateTime(timezone=True), nullable=False, comment="结束时间")
    duration_seconds = Column(Integer, nullable=False, comment="计时秒数")
    table_cost = Column(Numeric(20, 10), nullable=False, comment="台费（保留10位小数，不取整）")
    items_cost = Column(Numeric(20, 10), nullable=False, comment="商品费（保留10位小数，不取整）")
    total_amount = Column(Numeric(12, 2), nullable=False, comment="应收金额（取整）")
    payment_method = Column(String(20), nullable=False, comment="支付方式：Cash, UPI, Split Pay, Membership")
    cash_amount = Column(Numeric(12, 2), nullable=True, comment="组合支付-现金部分")
    upi_amount = Column(Numeric(12, 2), nullable=True, comment="组合支付-UPI部分")
    items = Column(JSON, nullable=False, default=list, comment="售出商品明细")
    customer_name = Column(String(100), nullable=False, comment="顾客名称")
    member_id = Column(Integer, nullable=True, index=True, comment="会员ID")
    hours_deducted = Column(Numeric(10, 4), nullable=True, comment="扣除会员时长")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True, comment="创建时间")

    __table_args__ = (
        Index("idx_transactions_table_id", "table_id"),
        Index("idx_transactions_created_at", "created_at"),
    )
