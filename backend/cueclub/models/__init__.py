"""
数据库模型
"""
from cueclub.models.table import ClubTable
from cueclub.models.menu_item import MenuItem
from cueclub.models.membership_plan import MembershipPlan
from cueclub.models.member import Member
from cueclub.models.active_session import ActiveSession
from cueclub.models.transaction import Transaction
from cueclub.models.operation_log import OperationLog

__all__ = [
    "ClubTable",
    "MenuItem",
    "MembershipPlan",
    "Member",
    "ActiveSession",
    "Transaction",
    "OperationLog",
]
