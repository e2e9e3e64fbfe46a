"""
结算流水读写（只新增，不修改）
"""
from datetime import date, datetime, time, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from cueclub.models.transaction import Transaction


def save_transaction(db: Session, transaction: Transaction) -> Transaction:
    db.add(transaction)
    db.flush()
    return transaction


def get_transaction(db: Session, transaction_id: int) -> Optional[Transaction]:
    return db.query(Transaction).filter(Transaction.id == transaction_id).first()


def list_transactions(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    table_id: Optional[int] = None,
    payment_method: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Transaction]:
    query = db.query(Transaction)

    if table_id:
        query = query.filter(Transaction.table_id == table_id)

    if payment_method:
        query = query.filter(Transaction.payment_method == payment_method)

    # 日期范围筛选（按UTC日期）
    if start_date:
        query = query.filter(Transaction.created_at >= datetime.combine(start_date, time.min, tzinfo=timezone.utc))

    if end_date:
        query = query.filter(Transaction.created_at <= datetime.combine(end_date, time.max, tzinfo=timezone.utc))

    return query.order_by(Transaction.created_at.desc(), Transaction.id.desc()).offset(skip).limit(limit).all()
