"""
数据库初始化脚本
创建所有表，可选写入演示数据（台桌、菜单、会员套餐、会员）

用法：
    python -m cueclub.db.init_db          # 只建表
    python -m cueclub.db.init_db --seed   # 建表并写入演示数据
"""
import logging
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from cueclub.core.enums import TableCategory
from cueclub.db.database import engine, Base, SessionLocal
from cueclub.models import ClubTable, MenuItem, MembershipPlan, Member

logger = logging.getLogger(__name__)

DEMO_TABLES = [
    ("Table 1", TableCategory.AMERICAN_POOL, Decimal("120")),
    ("Table 2", TableCategory.AMERICAN_POOL, Decimal("120")),
    ("Table 3", TableCategory.MINI_SNOOKER, Decimal("150")),
    ("Table 4", TableCategory.STANDARD, Decimal("100")),
]

DEMO_MENU = [
    ("Chips", "Snacks", Decimal("20"), 50),
    ("Cold Drink", "Drinks", Decimal("40"), 30),
    ("Water Bottle", "Drinks", Decimal("20"), 40),
    ("Coffee", "Drinks", Decimal("50"), 20),
    ("Sandwich", "Food", Decimal("80"), 10),
]


def init_db():
    """初始化数据库，创建所有表"""
    Base.metadata.create_all(bind=engine)
    logger.info("数据库表创建完成")


def seed_demo_data(db: Session) -> bool:
    """写入演示数据；已有台桌时跳过，返回是否写入"""
    if db.query(ClubTable).first() is not None:
        logger.info("已有台桌数据，跳过演示数据")
        return False

    for name, category, rate in DEMO_TABLES:
        db.add(ClubTable(name=name, category=category.value, rate=rate))
    for name, category, price, stock in DEMO_MENU:
        db.add(MenuItem(name=name, category=category, price=price, stock=stock))

    plan = MembershipPlan(
        name="Silver 10h",
        description="10 hours of table time",
        price=Decimal("1000"),
        total_hours=Decimal("10"),
        color="#C0C0C0",
    )
    db.add(plan)
    db.flush()
    db.add(Member(
        name="Demo Member",
        plan_id=plan.id,
        remaining_hours=plan.total_hours,
        mobile_number="9000000000",
        validity_date=datetime.now(timezone.utc) + timedelta(days=90),
    ))
    db.commit()
    logger.info("演示数据写入完成：%s 张台桌，%s 个商品", len(DEMO_TABLES), len(DEMO_MENU))
    return True


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    if "--seed" in sys.argv:
        with SessionLocal() as session:
            seed_demo_data(session)
