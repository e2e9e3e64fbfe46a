"""
台桌会话和结算相关的Pydantic模型
"""
from pydantic import BaseModel, Field, field_serializer
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from cueclub.core.billing import Bill, items_cost, table_cost
from cueclub.core.enums import PaymentMethod, SessionStatus
from cueclub.core.session_machine import SessionSnapshot, current_elapsed
from cueclub.models.table import ClubTable
from cueclub.schemas.common import format_datetime_local


class OrderLineResponse(BaseModel):
    """点单明细"""
    item_id: Optional[int] = None
    name: str
    category: str = ""
    price: Decimal
    quantity: int
    total: Decimal


class SessionResponse(BaseModel):
    """台桌会话响应模型"""
    table_id: int
    table_name: str
    status: SessionStatus
    start_time: Optional[datetime] = None
    opened_at: Optional[datetime] = Field(None, description="首次开台时间")
    elapsed_seconds: int = Field(..., description="当前已计时秒数（计时中为实时值）")
    total_pause_duration: int
    pause_time: Optional[datetime] = None
    items: List[OrderLineResponse] = []
    customer_name: str
    member_id: Optional[int] = None
    version: Optional[int] = Field(None, description="乐观锁版本号，修改时可回传 expected_version")
    rate: Decimal
    table_cost: Decimal = Field(..., description="当前台费")
    items_cost: Decimal = Field(..., description="当前商品费")

    @field_serializer('start_time', 'opened_at', 'pause_time')
    def serialize_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return format_datetime_local(dt)

    @field_serializer('table_cost', 'items_cost')
    def serialize_amount(self, amount: Decimal) -> str:
        return f"{amount:.2f}"

    @classmethod
    def build(cls, table: ClubTable, session: SessionSnapshot,
              now: Optional[datetime] = None) -> "SessionResponse":
        elapsed = current_elapsed(session, now)
        return cls(
            table_id=session.table_id,
            table_name=table.name,
            status=session.status,
            start_time=session.start_time,
            opened_at=session.opened_at,
            elapsed_seconds=elapsed,
            total_pause_duration=session.total_pause_duration,
            pause_time=session.pause_time,
            items=[
                OrderLineResponse(
                    item_id=line.item_id,
                    name=line.name,
                    category=line.category,
                    price=line.price,
                    quantity=line.quantity,
                    total=line.total,
                )
                for line in session.items
            ],
            customer_name=session.customer_name,
            member_id=session.member_id,
            version=session.version,
            rate=table.rate,
            table_cost=table_cost(elapsed, table.rate),
            items_cost=items_cost(session.items),
        )


class VersionedRequest(BaseModel):
    """带版本号的修改请求（可选）"""
    expected_version: Optional[int] = Field(None, description="读取时的版本号，不一致时拒绝修改")


class AddItemRequest(VersionedRequest):
    """点单请求"""
    item_id: int = Field(..., description="菜单商品ID")


class CustomerNameRequest(VersionedRequest):
    """修改顾客名称请求"""
    customer_name: str = Field(..., min_length=1, max_length=100, description="顾客名称")


class AttachMemberRequest(VersionedRequest):
    """关联会员请求"""
    member_id: int = Field(..., description="会员ID")


class SettleSessionRequest(VersionedRequest):
    """结算请求"""
    payment_method: PaymentMethod = Field(..., description="支付方式：Cash, UPI, Split Pay, Membership")
    cash_amount: Optional[Decimal] = Field(None, ge=0, description="组合支付-现金金额")
    upi_amount: Optional[Decimal] = Field(None, ge=0, description="组合支付-UPI金额")


class BillResponse(BaseModel):
    """账单预览"""
    table_id: int
    status: SessionStatus
    payment_method: Optional[PaymentMethod] = None
    elapsed_seconds: int
    played_hours: Decimal
    rate: Decimal
    table_cost: Decimal
    items_cost: Decimal
    total_payable: int

    @field_serializer('table_cost', 'items_cost')
    def serialize_amount(self, amount: Decimal) -> str:
        return f"{amount:.2f}"

    @classmethod
    def build(cls, session: SessionSnapshot, bill: Bill) -> "BillResponse":
        return cls(
            table_id=session.table_id,
            status=session.status,
            payment_method=bill.payment_method,
            elapsed_seconds=bill.elapsed_seconds,
            played_hours=bill.played_hours,
            rate=bill.rate,
            table_cost=bill.table_cost,
            items_cost=bill.items_cost,
            total_payable=bill.total_payable,
        )


class TransactionResponse(BaseModel):
    """结算流水响应模型"""
    id: int
    table_id: int
    table_name: str
    start_time: Optional[datetime] = None
    end_time: datetime
    duration_seconds: int
    table_cost: Decimal
    items_cost: Decimal
    total_amount: Decimal
    payment_method: str
    cash_amount: Optional[Decimal] = None
    upi_amount: Optional[Decimal] = None
    items: List[dict] = []
    customer_name: str
    member_id: Optional[int] = None
    hours_deducted: Optional[Decimal] = None
    created_at: datetime

    class Config:
        from_attributes = True

    @field_serializer('start_time', 'end_time', 'created_at')
    def serialize_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return format_datetime_local(dt)

    @field_serializer('table_cost', 'items_cost')
    def serialize_amount(self, amount: Decimal) -> str:
        return f"{amount:.2f}"
