import os
import tempfile
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

# Point the app at a throwaway SQLite file before anything imports cueclub
_db_dir = tempfile.mkdtemp(prefix="cueclub-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_db_dir}/test.db"
os.environ["TICKER_INTERVAL_SECONDS"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

from cueclub.core import session_machine  # noqa: E402
from cueclub.db.database import Base, SessionLocal, engine  # noqa: E402
from cueclub.models import ClubTable, Member, MembershipPlan, MenuItem  # noqa: E402

T0 = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def advance(self, seconds: int):
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock(monkeypatch):
    """Replaces utcnow() for every transition that is not given an explicit time."""
    frozen = FrozenClock(T0)
    monkeypatch.setattr(session_machine, "utcnow", lambda: frozen.now)
    return frozen


@pytest.fixture
def seeded():
    """One 120/h table, two menu items, a plan and a member with 10 hours."""
    with SessionLocal() as session:
        table = ClubTable(name="Table 1", category="American Pool", rate=Decimal("120"))
        spare = ClubTable(name="Table 2", category="Mini Snooker", rate=Decimal("150"))
        cola = MenuItem(name="Cola", category="Drinks", price=Decimal("30"), stock=10)
        chips = MenuItem(name="Chips", category="Snacks", price=Decimal("20"), stock=5)
        plan = MembershipPlan(name="Gold", price=Decimal("1000"), total_hours=Decimal("10"))
        session.add_all([table, spare, cola, chips, plan])
        session.flush()
        member = Member(
            name="Ravi Kumar",
            plan_id=plan.id,
            remaining_hours=Decimal("10"),
            mobile_number="9876543210",
            validity_date=T0 + timedelta(days=30),
        )
        session.add(member)
        session.commit()
        return SimpleNamespace(
            table_id=table.id,
            spare_table_id=spare.id,
            cola_id=cola.id,
            chips_id=chips.id,
            plan_id=plan.id,
            member_id=member.id,
        )


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from cueclub.main import app

    with TestClient(app) as test_client:
        yield test_client
