"""
枚举定义
"""
from enum import Enum


class TableCategory(str, Enum):
    """台桌类型"""

    AMERICAN_POOL = "American Pool"
    MINI_SNOOKER = "Mini Snooker"
    STANDARD = "Standard"


class SessionStatus(str, Enum):
    """台桌计时状态

    ``IDLE`` 表示尚未开始计时：没有记录，或者开台前已预先点单的记录。
    """

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class PaymentMethod(str, Enum):
    """支付方式"""

    CASH = "Cash"
    UPI = "UPI"
    SPLIT_PAY = "Split Pay"
    MEMBERSHIP = "Membership"
