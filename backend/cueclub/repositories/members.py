"""
会员查询和时长扣减
"""
import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Numeric, func
from sqlalchemy.orm import Session

from cueclub.core.billing import round_hours
from cueclub.core.errors import InsufficientHours, NotFound
from cueclub.models.member import Member

logger = logging.getLogger(__name__)

HOURS = Numeric(10, 4)


def get_member(db: Session, member_id: int, for_update: bool = False) -> Optional[Member]:
    query = db.query(Member).filter(Member.id == member_id)
    if for_update:
        query = query.with_for_update()
    return query.first()


def search_members(db: Session, term: str, limit: int = 20) -> List[Member]:
    """
    按姓名前缀或手机号精确匹配搜索会员
    分两次查询后按ID合并去重；姓名只做前缀匹配，不是全文搜索
    """
    term = (term or "").strip()
    if not term:
        return []

    by_name = db.query(Member).filter(
        Member.name.ilike(f"{term}%")
    ).order_by(Member.name).limit(limit).all()
    by_mobile = db.query(Member).filter(
        Member.mobile_number == term
    ).order_by(Member.name).limit(limit).all()

    results = []
    seen = set()
    for member in by_name + by_mobile:
        if member.id in seen:
            continue
        seen.add(member.id)
        results.append(member)
    return results[:limit]


def deduct_member_hours(db: Session, member_id: int, hours: Decimal) -> Decimal:
    """
    扣减会员剩余时长，返回扣减后的余额
    条件更新：余额不足时不扣减（防止并发结算把余额扣成负数）
    余额按4位小数比较和保存，SQLite 以浮点存储，不取整会累积误差
    """
    hours = round_hours(hours)
    updated = db.query(Member).filter(
        Member.id == member_id,
        func.round(Member.remaining_hours, 4, type_=HOURS) >= hours,
    ).update(
        {Member.remaining_hours: func.round(Member.remaining_hours - hours, 4, type_=HOURS)},
        synchronize_session=False,
    )
    if updated != 1:
        if get_member(db, member_id) is None:
            raise NotFound(f"Member {member_id} not found")
        raise InsufficientHours(f"Member {member_id} does not have {hours} hours remaining")
    remaining = db.query(Member.remaining_hours).filter(Member.id == member_id).scalar()
    logger.info("会员 %s 扣减 %s 小时，剩余 %s 小时", member_id, hours, remaining)
    return remaining
