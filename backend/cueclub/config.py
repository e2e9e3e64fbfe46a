"""
应用配置
优先读取环境变量，其次读取 .env 文件
"""
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用配置项"""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # SQLite数据库路径
    database_url: str = "sqlite:///./database.db"
    # 未关联会员时的默认顾客名称
    walk_in_customer_name: str = "Walk-in Customer"
    # 计时推送间隔（秒）
    ticker_interval_seconds: float = 1.0
    # 显示时区偏移（分钟），默认印度标准时间 UTC+5:30
    display_utc_offset_minutes: int = 330
    # 结算时是否校验会员有效期
    enforce_membership_validity: bool = True
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]


@lru_cache
def get_settings() -> Settings:
    """获取配置（缓存）"""
    return Settings()
