"""
台桌会话存储
每张台桌最多一条记录，以 table_id 为主键；通过 version 列做乐观锁
这里只负责读写和 flush，提交由调用方的 atomic() 负责
"""
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cueclub.core.enums import SessionStatus
from cueclub.core.errors import ConcurrencyConflict, NotFound, SessionAlreadyActive
from cueclub.core.session_machine import OrderLine, SessionSnapshot, as_utc
from cueclub.models.active_session import ActiveSession


def to_snapshot(row: ActiveSession) -> SessionSnapshot:
    return SessionSnapshot(
        table_id=row.table_id,
        status=SessionStatus(row.status),
        start_time=as_utc(row.start_time),
        opened_at=as_utc(row.opened_at),
        elapsed_seconds=row.elapsed_seconds or 0,
        total_pause_duration=row.total_pause_duration or 0,
        pause_time=as_utc(row.pause_time),
        items=tuple(OrderLine.from_dict(item) for item in (row.items or [])),
        customer_name=row.customer_name,
        member_id=row.member_id,
        version=row.version,
    )


def _apply(row: ActiveSession, snapshot: SessionSnapshot):
    row.status = snapshot.status.value
    row.start_time = snapshot.start_time
    row.opened_at = snapshot.opened_at
    row.elapsed_seconds = snapshot.elapsed_seconds
    row.total_pause_duration = snapshot.total_pause_duration
    row.pause_time = snapshot.pause_time
    row.items = [line.to_dict() for line in snapshot.items]
    row.customer_name = snapshot.customer_name
    row.member_id = snapshot.member_id


def _check_version(row: ActiveSession, expected_version: Optional[int]):
    if expected_version is not None and row.version != expected_version:
        raise ConcurrencyConflict(
            f"Session for table {row.table_id} changed (version {row.version}, expected {expected_version})"
        )


def get_row(db: Session, table_id: int) -> Optional[ActiveSession]:
    return db.query(ActiveSession).filter(ActiveSession.table_id == table_id).first()


def get_active_session(db: Session, table_id: int) -> Optional[SessionSnapshot]:
    """按台桌读取会话，没有则返回None"""
    row = get_row(db, table_id)
    return to_snapshot(row) if row else None


def session_status(db: Session, table_id: int) -> SessionStatus:
    """没有记录的台桌视为 idle"""
    status = db.query(ActiveSession.status).filter(ActiveSession.table_id == table_id).scalar()
    return SessionStatus(status) if status else SessionStatus.IDLE


def create_active_session(db: Session, snapshot: SessionSnapshot) -> SessionSnapshot:
    """新建会话；台桌已有会话时拒绝"""
    if get_row(db, snapshot.table_id) is not None:
        raise SessionAlreadyActive(f"Table {snapshot.table_id} already has an active session")
    row = ActiveSession(table_id=snapshot.table_id)
    _apply(row, snapshot)
    db.add(row)
    try:
        db.flush()
    except IntegrityError as exc:
        # 另一个终端同时开台
        db.rollback()
        raise SessionAlreadyActive(f"Table {snapshot.table_id} already has an active session") from exc
    return to_snapshot(row)


def update_active_session(db: Session, snapshot: SessionSnapshot,
                          expected_version: Optional[int] = None) -> SessionSnapshot:
    """
    整体写回会话
    expected_version 或 snapshot.version 与库中版本不一致时拒绝写入
    """
    row = get_row(db, snapshot.table_id)
    if row is None:
        raise NotFound(f"No active session for table {snapshot.table_id}")
    _check_version(row, expected_version)
    _check_version(row, snapshot.version)
    _apply(row, snapshot)
    db.flush()
    return to_snapshot(row)


def delete_active_session(db: Session, table_id: int, expected_version: Optional[int] = None):
    row = get_row(db, table_id)
    if row is None:
        raise NotFound(f"No active session for table {table_id}")
    _check_version(row, expected_version)
    db.delete(row)
    db.flush()
