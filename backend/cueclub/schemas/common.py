"""
Pydantic模型公共方法
"""
from datetime import datetime, timezone, timedelta
from typing import Optional

from cueclub.config import get_settings


def local_timezone() -> timezone:
    """门店所在时区，默认 UTC+5:30"""
    return timezone(timedelta(minutes=get_settings().display_utc_offset_minutes))


def format_datetime_local(dt: Optional[datetime]) -> Optional[str]:
    """将UTC时间转换为本地时间字符串"""
    if dt is None:
        return None
    # 如果时间没有时区信息，假设它是 UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    local_dt = dt.astimezone(local_timezone())
    return local_dt.strftime("%Y-%m-%d %H:%M:%S")
