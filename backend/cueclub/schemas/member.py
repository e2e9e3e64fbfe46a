"""
会员相关的Pydantic模型
"""
from pydantic import BaseModel, field_serializer
from typing import Optional
from datetime import datetime
from decimal import Decimal

from cueclub.schemas.common import format_datetime_local


class MemberResponse(BaseModel):
    """会员响应模型"""
    id: int
    name: str
    plan_id: int
    remaining_hours: Decimal
    mobile_number: Optional[str] = None
    validity_date: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_serializer('validity_date')
    def serialize_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return format_datetime_local(dt)
