"""
结算流水查询API（流水只读，不提供修改和删除）
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from cueclub.core.enums import PaymentMethod
from cueclub.db.database import get_db
from cueclub.repositories import transactions
from cueclub.schemas.session import TransactionResponse

router = APIRouter(prefix="/api/transactions", tags=["结算流水"])


@router.get("", response_model=List[TransactionResponse])
def get_transactions(
    skip: int = Query(0, ge=0, description="跳过记录数"),
    limit: int = Query(100, ge=1, le=1000, description="返回记录数"),
    table_id: Optional[int] = Query(None, description="台桌筛选"),
    payment_method: Optional[PaymentMethod] = Query(None, description="支付方式筛选"),
    start_date: Optional[date] = Query(None, description="开始日期"),
    end_date: Optional[date] = Query(None, description="结束日期"),
    db: Session = Depends(get_db)
):
    """获取结算流水列表"""
    return transactions.list_transactions(
        db,
        skip=skip,
        limit=limit,
        table_id=table_id,
        payment_method=payment_method.value if payment_method else None,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: int, db: Session = Depends(get_db)):
    """获取结算流水详情"""
    transaction = transactions.get_transaction(db, transaction_id)
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction
