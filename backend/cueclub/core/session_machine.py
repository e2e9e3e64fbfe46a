"""
台桌计时状态机

状态流转：
    idle    -[start]->  running
    running -[pause]->  paused
    paused  -[resume]-> running
    running/paused -[stop]-> stopped
    stopped -[resume]-> running   （结算前可以重新开始计时）

每个操作都接收完整的旧状态并返回完整的新状态，不修改入参。
所有时间均为带时区的 UTC 时间，计时精度为整秒。
"""
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, Tuple

from cueclub.core.enums import SessionStatus
from cueclub.core.errors import InvalidTransition, SessionAlreadyActive, ValidationFailed


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    # SQLite 读回的时间不带时区，统一按UTC处理
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _whole_seconds(later: datetime, earlier: datetime) -> int:
    return math.floor((later - earlier).total_seconds())


@dataclass(frozen=True)
class OrderLine:
    """点单明细：下单时的商品快照 + 数量"""
    item_id: Optional[int]
    name: str
    price: Decimal
    quantity: int = 1
    category: str = ""

    @property
    def total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        # 金额以字符串保存，避免JSON浮点误差
        return {
            "id": self.item_id,
            "name": self.name,
            "category": self.category,
            "price": str(self.price),
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OrderLine":
        return cls(
            item_id=data.get("id"),
            name=data.get("name", ""),
            category=data.get("category") or "",
            price=Decimal(str(data.get("price", "0"))),
            quantity=int(data.get("quantity", 1)),
        )


@dataclass(frozen=True)
class SessionSnapshot:
    """台桌会话的完整状态"""
    table_id: int
    customer_name: str
    status: SessionStatus = SessionStatus.IDLE
    start_time: Optional[datetime] = None
    elapsed_seconds: int = 0
    total_pause_duration: int = 0
    pause_time: Optional[datetime] = None
    items: Tuple[OrderLine, ...] = field(default_factory=tuple)
    member_id: Optional[int] = None
    # 首次开台时间，停止后继续计时不会改变
    opened_at: Optional[datetime] = None
    # 乐观锁版本号，未持久化时为None
    version: Optional[int] = None

    @property
    def is_started(self) -> bool:
        return self.status != SessionStatus.IDLE


def new_session(table_id: int, customer_name: str) -> SessionSnapshot:
    """创建一个尚未计时的会话"""
    return SessionSnapshot(table_id=table_id, customer_name=customer_name)


def current_elapsed(session: SessionSnapshot, now: Optional[datetime] = None) -> int:
    """
    计算当前已计时秒数
    计时中：(now - start_time) - 累计暂停时长；其它状态返回冻结值
    """
    if session.status != SessionStatus.RUNNING or session.start_time is None:
        return session.elapsed_seconds
    now = now or utcnow()
    running = _whole_seconds(now, session.start_time) - session.total_pause_duration
    # 时钟回拨时不允许计时倒退
    return max(running, session.elapsed_seconds, 0)


def start(
    session: Optional[SessionSnapshot],
    table_id: int,
    customer_name: str,
    now: Optional[datetime] = None,
) -> SessionSnapshot:
    """
    开台计时
    已有计时中/暂停/停止的会话时拒绝；开台前已点的商品和顾客信息保留
    """
    if session is not None and session.is_started:
        raise SessionAlreadyActive(f"Table {table_id} already has an active session")
    now = now or utcnow()
    base = session if session is not None else new_session(table_id, customer_name)
    return replace(
        base,
        status=SessionStatus.RUNNING,
        start_time=now,
        opened_at=now,
        elapsed_seconds=0,
        total_pause_duration=0,
        pause_time=None,
    )


def pause(session: SessionSnapshot, now: Optional[datetime] = None) -> SessionSnapshot:
    """暂停计时，冻结已计时秒数"""
    if session.status != SessionStatus.RUNNING:
        raise InvalidTransition(f"Cannot pause a session that is {session.status.value}")
    now = now or utcnow()
    return replace(
        session,
        status=SessionStatus.PAUSED,
        elapsed_seconds=current_elapsed(session, now),
        pause_time=now,
    )


def resume(session: SessionSnapshot, now: Optional[datetime] = None) -> SessionSnapshot:
    """
    继续计时
    - 暂停状态：把本次暂停时长累加到 total_pause_duration，start_time 不变
    - 停止状态：按冻结的秒数重新推算 start_time，累计暂停清零
    """
    now = now or utcnow()
    if session.status == SessionStatus.PAUSED:
        paused_for = 0
        if session.pause_time is not None:
            paused_for = max(_whole_seconds(now, session.pause_time), 0)
        return replace(
            session,
            status=SessionStatus.RUNNING,
            total_pause_duration=session.total_pause_duration + paused_for,
            pause_time=None,
        )
    if session.status == SessionStatus.STOPPED:
        return replace(
            session,
            status=SessionStatus.RUNNING,
            start_time=now - timedelta(seconds=session.elapsed_seconds),
            total_pause_duration=0,
            pause_time=None,
        )
    raise InvalidTransition(f"Cannot resume a session that is {session.status.value}")


def stop(session: SessionSnapshot, now: Optional[datetime] = None) -> SessionSnapshot:
    """停止计时，准备结算"""
    if session.status == SessionStatus.RUNNING:
        now = now or utcnow()
        elapsed = current_elapsed(session, now)
    elif session.status == SessionStatus.PAUSED:
        elapsed = session.elapsed_seconds
    else:
        raise InvalidTransition(f"Cannot stop a session that is {session.status.value}")
    return replace(session, status=SessionStatus.STOPPED, elapsed_seconds=elapsed, pause_time=None)


def add_item(session: SessionSnapshot, item) -> SessionSnapshot:
    """
    加一份商品
    item 只需要有 id、name、price 属性（category 可选），任何状态都允许点单
    """
    if item.id is None:
        raise ValidationFailed("Menu item has no catalog id")
    lines = list(session.items)
    for index, line in enumerate(lines):
        if line.item_id == item.id:
            lines[index] = replace(line, quantity=line.quantity + 1)
            break
    else:
        lines.append(OrderLine(
            item_id=item.id,
            name=item.name,
            category=getattr(item, "category", "") or "",
            price=Decimal(str(item.price)),
            quantity=1,
        ))
    return replace(session, items=tuple(lines))


def remove_item(session: SessionSnapshot, item_id: int) -> SessionSnapshot:
    """减一份商品，数量为0时移除该行；商品不存在时原样返回"""
    lines = []
    found = False
    for line in session.items:
        if line.item_id == item_id and not found:
            found = True
            if line.quantity > 1:
                lines.append(replace(line, quantity=line.quantity - 1))
            continue
        lines.append(line)
    if not found:
        return session
    return replace(session, items=tuple(lines))


def set_customer_name(session: SessionSnapshot, customer_name: str) -> SessionSnapshot:
    name = customer_name.strip()
    if not name:
        raise ValidationFailed("Customer name cannot be empty")
    return replace(session, customer_name=name)


def attach_member(session: SessionSnapshot, member) -> SessionSnapshot:
    """关联会员，顾客名称改为会员姓名"""
    return replace(session, member_id=member.id, customer_name=member.name)


def detach_member(session: SessionSnapshot, walk_in_name: str) -> SessionSnapshot:
    return replace(session, member_id=None, customer_name=walk_in_name)
