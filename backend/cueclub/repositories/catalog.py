"""
台桌和菜单数据读取，以及结算时的库存扣减
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from cueclub.core.errors import NotFound
from cueclub.models.menu_item import MenuItem
from cueclub.models.table import ClubTable

logger = logging.getLogger(__name__)


def get_table_by_id(db: Session, table_id: int) -> Optional[ClubTable]:
    return db.query(ClubTable).filter(ClubTable.id == table_id).first()


def require_table(db: Session, table_id: int) -> ClubTable:
    table = get_table_by_id(db, table_id)
    if not table:
        raise NotFound(f"Table {table_id} not found")
    return table


def list_tables(db: Session) -> List[ClubTable]:
    return db.query(ClubTable).order_by(ClubTable.name).all()


def list_menu_items(db: Session, category: Optional[str] = None) -> List[MenuItem]:
    query = db.query(MenuItem)
    if category:
        query = query.filter(MenuItem.category == category)
    return query.order_by(MenuItem.name).all()


def get_menu_item(db: Session, item_id: int) -> Optional[MenuItem]:
    return db.query(MenuItem).filter(MenuItem.id == item_id).first()


def lock_menu_items(db: Session, item_ids: Iterable[int]) -> List[MenuItem]:
    """
    结算前锁定涉及的商品行（支持 FOR UPDATE 的数据库）
    任何一个商品不存在都抛出 NotFound
    """
    ids = sorted(set(item_ids))
    if not ids:
        return []
    items = db.query(MenuItem).filter(MenuItem.id.in_(ids)).with_for_update().all()
    missing = set(ids) - {item.id for item in items}
    if missing:
        raise NotFound(f"Menu item(s) {', '.join(str(i) for i in sorted(missing))} not found")
    return items


def decrement_stock(db: Session, item_id: int, quantity: int) -> int:
    """
    扣减库存，返回扣减后的库存
    在SQL中做减法，避免并发结算时丢失更新；允许负库存，只记录警告
    """
    updated = db.query(MenuItem).filter(MenuItem.id == item_id).update(
        {MenuItem.stock: MenuItem.stock - quantity},
        synchronize_session=False,
    )
    if updated != 1:
        raise NotFound(f"Menu item {item_id} not found")
    new_stock = db.query(MenuItem.stock).filter(MenuItem.id == item_id).scalar()
    if new_stock < 0:
        logger.warning("商品 %s 库存为负: %s", item_id, new_stock)
    return new_stock
