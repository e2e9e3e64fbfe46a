"""
数据库配置和连接
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from cueclub.config import get_settings

DATABASE_URL = get_settings().database_url

# SQLite需要关闭同线程检查，其它数据库不需要
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# 创建数据库引擎
engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    echo=False  # 设置为True可以看到SQL语句
)

# 创建会话工厂
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 创建基础模型类
Base = declarative_base()


def get_db():
    """获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
