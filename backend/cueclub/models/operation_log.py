"""
操作日志模型
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Index
from sqlalchemy.sql import func
from cueclub.db.database import Base


class OperationLog(Base):
    """操作日志表"""
    __tablename__ = "operation_logs"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), nullable=False, index=True, comment="操作员")
    action = Column(String(100), nullable=False, index=True, comment="操作类型：如开台、结算等")
    module = Column(String(50), nullable=False, index=True, comment="操作模块：如台桌计时、会员等")
    table_id = Column(Integer, nullable=True, index=True, comment="涉及的台桌ID")
    method = Column(String(10), nullable=False, comment="HTTP方法：GET、POST、PUT、DELETE")
    path = Column(String(500), nullable=False, comment="请求路径")
    ip_address = Column(String(50), comment="IP地址")
    request_data = Column(Text, comment="请求数据（JSON格式）")
    status_code = Column(Integer, comment="HTTP状态码")
    error_message = Column(Text, comment="错误信息（如果有）")
    execution_time = Column(Integer, comment="执行时间（毫秒）")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True, comment="创建时间")

    __table_args__ = (
        Index("idx_operation_logs_action", "action"),
        Index("idx_operation_logs_module", "module"),
        Index("idx_operation_logs_created_at", "created_at"),
    )
