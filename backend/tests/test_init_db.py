from cueclub.core.enums import TableCategory
from cueclub.db.init_db import DEMO_MENU, DEMO_TABLES, init_db, seed_demo_data
from cueclub.models import ClubTable, Member, MenuItem


def test_seed_demo_data_once(db):
    init_db()
    assert seed_demo_data(db) is True
    assert db.query(ClubTable).count() == len(DEMO_TABLES)
    assert db.query(MenuItem).count() == len(DEMO_MENU)
    assert {table.category for table in db.query(ClubTable)} == {c.value for c in TableCategory}

    member = db.query(Member).one()
    assert member.remaining_hours == member.plan.total_hours

    # running it again leaves existing data alone
    assert seed_demo_data(db) is False
    assert db.query(ClubTable).count() == len(DEMO_TABLES)
