"""
台桌和菜单相关的Pydantic模型
"""
from pydantic import BaseModel, Field, field_serializer
from typing import Optional
from datetime import datetime
from decimal import Decimal

from cueclub.core.enums import SessionStatus, TableCategory
from cueclub.schemas.common import format_datetime_local


class TableResponse(BaseModel):
    """台桌响应模型"""
    id: int
    name: str
    category: TableCategory
    rate: Decimal = Field(..., description="每小时费用")
    status: SessionStatus = Field(SessionStatus.IDLE, description="当前计时状态")
    available: bool = Field(True, description="是否空闲")
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    @field_serializer('created_at', 'updated_at')
    def serialize_datetime(self, dt: datetime) -> str:
        return format_datetime_local(dt)


class MenuItemResponse(BaseModel):
    """菜单商品响应模型"""
    id: int
    name: str
    category: str
    price: Decimal
    stock: int = Field(..., description="库存（可能为负）")
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_serializer('updated_at')
    def serialize_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return format_datetime_local(dt)
