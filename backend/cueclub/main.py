"""
FastAPI主应用入口
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cueclub.config import get_settings
from cueclub.core.errors import ClubError
from cueclub.db.database import engine, Base
from cueclub.middleware.operation_log import OperationLogMiddleware

# 导入所有模型以确保表被创建
from cueclub.models import (  # noqa: F401
    ClubTable, MenuItem, MembershipPlan, Member, ActiveSession, Transaction, OperationLog
)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# 创建数据库表
Base.metadata.create_all(bind=engine)

# 创建FastAPI应用
app = FastAPI(
    title="台球厅计时收银系统API",
    description="台桌计时、点单、会员扣时和结算后端API",
    version="1.0.0"
)

app.add_middleware(OperationLogMiddleware)

# 配置CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ClubError)
async def club_error_handler(request: Request, exc: ClubError):
    """业务异常：按异常类型返回状态码和错误码"""
    if exc.status_code >= 500:
        logger.error("%s %s 失败: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# 全局异常处理
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """全局异常处理器，确保所有错误都返回JSON"""
    logger.exception("未处理的异常: %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": "internal_error", "retryable": False},
    )


@app.get("/")
async def root():
    """根路径"""
    return {"message": "台球厅计时收银系统API", "version": "1.0.0"}


@app.get("/health")
async def health():
    """健康检查"""
    return {"status": "ok"}


# 注册API路由
from cueclub.api import tables, members, sessions, transactions, operation_logs  # noqa: E402
app.include_router(tables.router)
app.include_router(members.router)
app.include_router(sessions.router)
app.include_router(transactions.router)
app.include_router(operation_logs.router)
