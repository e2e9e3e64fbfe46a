"""
业务异常定义

所有异常都带有 HTTP 状态码、错误码和是否可重试标记，
由 main.py 中的异常处理器统一转换为 JSON 响应。
"""


class ClubError(Exception):
    """业务异常基类"""

    status_code = 500
    code = "error"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code, "retryable": self.retryable}


class ValidationFailed(ClubError):
    """写入前的校验失败"""

    status_code = 400
    code = "validation_error"


class SplitPayMismatch(ValidationFailed):
    code = "split_pay_mismatch"


class MembershipRequired(ValidationFailed):
    code = "member_required"


class MembershipExpired(ValidationFailed):
    code = "membership_expired"


class InsufficientHours(ValidationFailed):
    code = "insufficient_hours"


class NotFound(ClubError):
    status_code = 404
    code = "not_found"


class InvalidTransition(ClubError):
    """当前状态不允许该操作"""

    status_code = 409
    code = "invalid_transition"


class ConcurrencyConflict(ClubError):
    """并发冲突，由操作员重新提交"""

    status_code = 409
    code = "conflict"
    retryable = True


class SessionAlreadyActive(ConcurrencyConflict):
    code = "session_already_active"


class PersistenceFailure(ClubError):
    status_code = 500
    code = "persistence_error"
