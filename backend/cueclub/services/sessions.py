"""
台桌会话业务
读取会话 -> 状态机计算新状态 -> 写回存储，每个操作一个数据库事务
"""
import logging
from datetime import datetime
from typing import Callable, Optional, Tuple

from sqlalchemy.orm import Session

from cueclub.config import get_settings
from cueclub.core import session_machine as machine
from cueclub.core.billing import Bill, compute_bill
from cueclub.core.enums import PaymentMethod, SessionStatus
from cueclub.core.errors import NotFound
from cueclub.core.session_machine import SessionSnapshot
from cueclub.db.unit_of_work import atomic
from cueclub.models.table import ClubTable
from cueclub.repositories import catalog, members, session_store

logger = logging.getLogger(__name__)


def _walk_in_name() -> str:
    return get_settings().walk_in_customer_name


def _require_session(db: Session, table_id: int) -> SessionSnapshot:
    session = session_store.get_active_session(db, table_id)
    if session is None:
        raise NotFound(f"No active session for table {table_id}")
    return session


def _mutate(
    db: Session,
    table_id: int,
    transition: Callable[[SessionSnapshot], SessionSnapshot],
    expected_version: Optional[int] = None,
    create_if_missing: bool = False,
) -> SessionSnapshot:
    """
    对会话执行一次状态变换并写回
    create_if_missing 为真时，没有会话会先建一条 idle 记录（开台前点单）
    状态没有变化时不写库
    """
    with atomic(db):
        catalog.require_table(db, table_id)
        current = session_store.get_active_session(db, table_id)
        if current is None:
            if not create_if_missing:
                raise NotFound(f"No active session for table {table_id}")
            updated = transition(machine.new_session(table_id, _walk_in_name()))
            return session_store.create_active_session(db, updated)
        updated = transition(current)
        if updated is current:
            return current
        return session_store.update_active_session(db, updated, expected_version)


def get_session(db: Session, table_id: int) -> Tuple[ClubTable, Optional[SessionSnapshot]]:
    table = catalog.require_table(db, table_id)
    return table, session_store.get_active_session(db, table_id)


def start_session(db: Session, table_id: int, now: Optional[datetime] = None,
                  expected_version: Optional[int] = None) -> SessionSnapshot:
    """开台；台桌已有开始计时的会话时拒绝"""
    now = now or machine.utcnow()
    with atomic(db):
        catalog.require_table(db, table_id)
        current = session_store.get_active_session(db, table_id)
        started = machine.start(current, table_id, _walk_in_name(), now)
        if current is None:
            result = session_store.create_active_session(db, started)
        else:
            result = session_store.update_active_session(db, started, expected_version)
    logger.info("台桌 %s 开始计时", table_id)
    return result


def pause_session(db: Session, table_id: int, now: Optional[datetime] = None,
                  expected_version: Optional[int] = None) -> SessionSnapshot:
    now = now or machine.utcnow()
    result = _mutate(db, table_id, lambda s: machine.pause(s, now), expected_version)
    logger.info("台桌 %s 暂停计时，已计时 %s 秒", table_id, result.elapsed_seconds)
    return result


def resume_session(db: Session, table_id: int, now: Optional[datetime] = None,
                   expected_version: Optional[int] = None) -> SessionSnapshot:
    now = now or machine.utcnow()
    result = _mutate(db, table_id, lambda s: machine.resume(s, now), expected_version)
    logger.info("台桌 %s 继续计时", table_id)
    return result


def stop_session(db: Session, table_id: int, now: Optional[datetime] = None,
                 expected_version: Optional[int] = None) -> SessionSnapshot:
    now = now or machine.utcnow()
    result = _mutate(db, table_id, lambda s: machine.stop(s, now), expected_version)
    logger.info("台桌 %s 停止计时，共 %s 秒", table_id, result.elapsed_seconds)
    return result


def add_item(db: Session, table_id: int, item_id: int,
             expected_version: Optional[int] = None) -> SessionSnapshot:
    """点单：按菜单当前价格加一份，任何状态都可以点"""
    item = catalog.get_menu_item(db, item_id)
    if item is None:
        raise NotFound(f"Menu item {item_id} not found")
    return _mutate(db, table_id, lambda s: machine.add_item(s, item), expected_version,
                   create_if_missing=True)


def remove_item(db: Session, table_id: int, item_id: int,
                expected_version: Optional[int] = None) -> SessionSnapshot:
    """退一份商品；会话里没有该商品时不做任何修改"""
    return _mutate(db, table_id, lambda s: machine.remove_item(s, item_id), expected_version)


def set_customer_name(db: Session, table_id: int, customer_name: str,
                      expected_version: Optional[int] = None) -> SessionSnapshot:
    return _mutate(db, table_id, lambda s: machine.set_customer_name(s, customer_name),
                   expected_version, create_if_missing=True)


def attach_member(db: Session, table_id: int, member_id: int,
                  expected_version: Optional[int] = None) -> SessionSnapshot:
    """关联会员（会员搜索后选中）"""
    member = members.get_member(db, member_id)
    if member is None:
        raise NotFound(f"Member {member_id} not found")
    return _mutate(db, table_id, lambda s: machine.attach_member(s, member), expected_version,
                   create_if_missing=True)


def detach_member(db: Session, table_id: int,
                  expected_version: Optional[int] = None) -> SessionSnapshot:
    walk_in = _walk_in_name()
    return _mutate(db, table_id, lambda s: machine.detach_member(s, walk_in), expected_version)


def reset_session(db: Session, table_id: int, expected_version: Optional[int] = None):
    """放弃未结算的会话，不产生流水，台桌恢复空闲"""
    with atomic(db):
        catalog.require_table(db, table_id)
        session_store.delete_active_session(db, table_id, expected_version)
    logger.info("台桌 %s 会话已重置", table_id)


def preview_bill(db: Session, table_id: int, payment_method: Optional[PaymentMethod] = None,
                 now: Optional[datetime] = None) -> Tuple[SessionSnapshot, Bill]:
    """
    账单预览
    已停止的会话按冻结时长计算；计时中的会话按当前时长计算，仅用于显示
    """
    table = catalog.require_table(db, table_id)
    session = _require_session(db, table_id)
    elapsed = machine.current_elapsed(session, now)
    return session, compute_bill(elapsed, table.rate, session.items, payment_method)


def table_status(db: Session, table_id: int) -> SessionStatus:
    return session_store.session_status(db, table_id)
