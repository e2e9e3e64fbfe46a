"""
结算

校验支付方式后，在同一个数据库事务中完成：
1. 写入结算流水
2. 扣减每个商品的库存（允许负库存）
3. 会员支付时扣减会员剩余时长
4. 删除台桌会话（台桌恢复空闲）
任何一步失败全部回滚，不会留下部分结果
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from cueclub.config import get_settings
from cueclub.core import session_machine as machine
from cueclub.core.billing import Bill, compute_bill, round_hours, split_pay_matches
from cueclub.core.enums import PaymentMethod, SessionStatus
from cueclub.core.errors import (
    ConcurrencyConflict, InsufficientHours, MembershipExpired, MembershipRequired, NotFound,
    SplitPayMismatch, ValidationFailed,
)
from cueclub.core.session_machine import SessionSnapshot, as_utc
from cueclub.db.unit_of_work import atomic
from cueclub.models.member import Member
from cueclub.models.table import ClubTable
from cueclub.models.transaction import Transaction
from cueclub.repositories import catalog, members, session_store, transactions

logger = logging.getLogger(__name__)


def _validate_lines(session: SessionSnapshot):
    for line in session.items:
        if line.item_id is None:
            raise ValidationFailed(f"Order line '{line.name}' has no catalog id")


def _validate_split_pay(bill: Bill, cash_amount: Optional[Decimal], upi_amount: Optional[Decimal]):
    if cash_amount is None or upi_amount is None:
        raise ValidationFailed("Split pay needs both a cash amount and a UPI amount")
    if cash_amount < 0 or upi_amount < 0:
        raise ValidationFailed("Split pay amounts cannot be negative")
    if not split_pay_matches(bill.total_payable, cash_amount, upi_amount):
        raise SplitPayMismatch(
            f"Cash {cash_amount} + UPI {upi_amount} does not match the payable amount {bill.total_payable}"
        )


def _validate_membership(db: Session, session: SessionSnapshot, bill: Bill, now: datetime) -> Member:
    if session.member_id is None:
        raise MembershipRequired("Select a member before settling with membership")
    member = members.get_member(db, session.member_id, for_update=True)
    if member is None:
        raise NotFound(f"Member {session.member_id} not found")
    validity = as_utc(member.validity_date)
    if get_settings().enforce_membership_validity and validity is not None and validity < now:
        raise MembershipExpired(f"Membership of {member.name} expired on {validity.date()}")
    if round_hours(member.remaining_hours) < bill.played_hours:
        raise InsufficientHours(
            f"{member.name} has {round_hours(member.remaining_hours)} hours left, "
            f"{bill.played_hours} hours needed"
        )
    return member


def _build_transaction(table: ClubTable, session: SessionSnapshot, bill: Bill,
                       method: PaymentMethod, cash_amount, upi_amount, now: datetime) -> Transaction:
    is_split = method == PaymentMethod.SPLIT_PAY
    is_membership = method == PaymentMethod.MEMBERSHIP
    return Transaction(
        table_id=table.id,
        table_name=table.name,
        start_time=session.opened_at or session.start_time,
        end_time=now,
        duration_seconds=session.elapsed_seconds,
        table_cost=bill.table_cost,
        items_cost=bill.items_cost,
        total_amount=Decimal(bill.total_payable),
        payment_method=method.value,
        cash_amount=cash_amount if is_split else None,
        upi_amount=upi_amount if is_split else None,
        items=[line.to_dict() for line in session.items],
        customer_name=session.customer_name,
        member_id=session.member_id if is_membership else None,
        hours_deducted=bill.played_hours if is_membership else None,
        created_at=now,
    )


def settle_session(
    db: Session,
    table_id: int,
    payment_method: Optional[PaymentMethod],
    cash_amount: Optional[Decimal] = None,
    upi_amount: Optional[Decimal] = None,
    expected_version: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Transaction:
    """结算台桌会话，返回生成的流水"""
    now = now or machine.utcnow()
    if payment_method is None:
        raise ValidationFailed("Select a payment method")
    method = PaymentMethod(payment_method)

    with atomic(db):
        table = catalog.require_table(db, table_id)
        session = session_store.get_active_session(db, table_id)
        if session is None:
            raise NotFound(f"No active session for table {table_id}")
        if expected_version is not None and session.version != expected_version:
            raise ConcurrencyConflict(
                f"Session for table {table_id} changed, reload before settling"
            )
        if session.status != SessionStatus.STOPPED:
            raise ValidationFailed("Stop the timer before settling the bill")
        _validate_lines(session)

        bill = compute_bill(session.elapsed_seconds, table.rate, session.items, method)
        if method == PaymentMethod.SPLIT_PAY:
            _validate_split_pay(bill, cash_amount, upi_amount)
        elif method == PaymentMethod.MEMBERSHIP:
            _validate_membership(db, session, bill, now)

        # 快照读：先锁定涉及的商品，任何商品不存在都在写入前失败
        catalog.lock_menu_items(db, [line.item_id for line in session.items])

        transaction = transactions.save_transaction(
            db, _build_transaction(table, session, bill, method, cash_amount, upi_amount, now)
        )
        for line in session.items:
            catalog.decrement_stock(db, line.item_id, line.quantity)
        if method == PaymentMethod.MEMBERSHIP:
            members.deduct_member_hours(db, session.member_id, bill.played_hours)
        session_store.delete_active_session(db, table_id, session.version)

    logger.info(
        "台桌 %s 结算完成：流水 %s，%s，应收 %s",
        table_id, transaction.id, method.value, bill.total_payable,
    )
    return transaction
