"""
操作日志中间件
用于记录所有API操作
"""
import base64
import binascii
import logging
import re
import time
from typing import Optional
from urllib.parse import unquote

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from cueclub.db.database import SessionLocal
from cueclub.models.operation_log import OperationLog

logger = logging.getLogger(__name__)

UNKNOWN_USER = "未知用户"

TABLE_PATH = re.compile(r"^/api/tables/(\d+)")


def decode_username(header_value: str, encoding: str = "") -> str:
    """
    解析前端传来的操作员名称
    x-username-encoded 为 base64 时先做 Base64 + URI 解码
    """
    if not header_value:
        return UNKNOWN_USER
    if encoding != "base64":
        return header_value
    try:
        decoded = unquote(base64.b64decode(header_value).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError) as e:
        logger.warning("解码用户名失败: %s, 原始值: %s", e, header_value)
        return UNKNOWN_USER
    return decoded or UNKNOWN_USER


def extract_table_id(path: str) -> Optional[int]:
    match = TABLE_PATH.match(path)
    return int(match.group(1)) if match else None


class OperationLogMiddleware(BaseHTTPMiddleware):
    """操作日志中间件"""

    # 不需要记录日志的路径
    EXCLUDED_PATHS = [
        "/",
        "/health",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/api/operation-logs",  # 操作日志查询本身不记录
    ]

    # 模块映射：根据路径前缀判断操作模块（台桌会话路径单独判断）
    MODULE_MAP = {
        "/api/tables": "台桌管理",
        "/api/menu-items": "菜单商品",
        "/api/members": "会员管理",
        "/api/transactions": "结算流水",
    }

    # 操作类型映射：根据HTTP方法判断操作类型
    ACTION_MAP = {
        "GET": "查询",
        "POST": "创建",
        "PUT": "更新",
        "DELETE": "删除",
        "PATCH": "修改",
    }

    # 台桌会话操作：路径结尾 -> 操作名称
    SESSION_ACTIONS = {
        ("POST", "/start"): "开台",
        ("POST", "/pause"): "暂停计时",
        ("POST", "/resume"): "继续计时",
        ("POST", "/stop"): "停止计时",
        ("POST", "/items"): "点单",
        ("POST", "/settle"): "结算台桌",
        ("POST", "/reset"): "重置台桌",
        ("PUT", "/customer"): "修改顾客",
        ("PUT", "/member"): "关联会员",
        ("DELETE", "/member"): "取消关联会员",
    }

    def resolve_module(self, path: str) -> str:
        if "/session" in path:
            return "台桌计时"
        for path_prefix, module_name in self.MODULE_MAP.items():
            if path.startswith(path_prefix):
                return module_name
        return "未知模块"

    def resolve_action(self, method: str, path: str) -> str:
        for (action_method, suffix), action in self.SESSION_ACTIONS.items():
            if method == action_method and path.endswith(suffix):
                return action
        if method == "DELETE" and "/items/" in path:
            return "退单"
        return self.ACTION_MAP.get(method, method)

    async def dispatch(self, request: Request, call_next):
        """处理请求并记录日志"""
        start_time = time.time()

        # 跳过OPTIONS预检请求（CORS预检请求）
        if request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path
        # 计时推送是长连接，不记录
        if path in self.EXCLUDED_PATHS or path.endswith("/stream"):
            return await call_next(request)

        method = request.method
        ip_address = request.client.host if request.client else None
        username = decode_username(
            request.headers.get("x-username", ""),
            request.headers.get("x-username-encoded", ""),
        )

        # 获取请求体
        request_data = None
        if method in ["POST", "PUT", "PATCH"]:
            body = await request.body()
            if body:
                request_data = body.decode("utf-8", errors="replace")[:2000]  # 限制长度

        # 执行请求
        response = await call_next(request)

        execution_time = int((time.time() - start_time) * 1000)
        status_code = response.status_code
        error_message = f"HTTP {status_code} 错误" if status_code >= 400 else None

        db = SessionLocal()
        try:
            db.add(OperationLog(
                username=username,
                action=self.resolve_action(method, path),
                module=self.resolve_module(path),
                table_id=extract_table_id(path),
                method=method,
                path=path,
                ip_address=ip_address,
                request_data=request_data,
                status_code=status_code,
                error_message=error_message,
                execution_time=execution_time,
            ))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("记录操作日志失败: %s %s", method, path)
        finally:
            db.close()

        return response
