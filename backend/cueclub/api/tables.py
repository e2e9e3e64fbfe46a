"""
台桌和菜单查询API（只读，增删改由管理后台负责）
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from cueclub.core.enums import SessionStatus
from cueclub.db.database import get_db
from cueclub.models.active_session import ActiveSession
from cueclub.repositories import catalog
from cueclub.schemas.table import MenuItemResponse, TableResponse
from cueclub.services import sessions

router = APIRouter(prefix="/api", tags=["台桌与菜单"])


def _table_response(table, status: SessionStatus) -> TableResponse:
    response = TableResponse.model_validate(table)
    response.status = status
    # 只有开台前点单的idle记录不占用台桌
    response.available = status == SessionStatus.IDLE
    return response


@router.get("/tables", response_model=List[TableResponse])
def get_tables(db: Session = Depends(get_db)):
    """获取台桌列表（含当前计时状态）"""
    tables = catalog.list_tables(db)
    statuses = dict(db.query(ActiveSession.table_id, ActiveSession.status).all())
    return [
        _table_response(table, SessionStatus(statuses.get(table.id, SessionStatus.IDLE.value)))
        for table in tables
    ]


@router.get("/tables/{table_id}", response_model=TableResponse)
def get_table(table_id: int, db: Session = Depends(get_db)):
    """获取台桌详情"""
    table = catalog.get_table_by_id(db, table_id)
    if not table:
        raise HTTPException(status_code=404, detail="Table not found")
    return _table_response(table, sessions.table_status(db, table_id))


@router.get("/menu-items", response_model=List[MenuItemResponse])
def get_menu_items(category: Optional[str] = None, db: Session = Depends(get_db)):
    """获取菜单商品列表"""
    return catalog.list_menu_items(db, category)
