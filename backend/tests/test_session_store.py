from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from cueclub.core.enums import SessionStatus
from cueclub.core.errors import ConcurrencyConflict, NotFound, SessionAlreadyActive
from cueclub.core.session_machine import OrderLine, SessionSnapshot
from cueclub.db.database import SessionLocal
from cueclub.db.unit_of_work import atomic
from cueclub.repositories import session_store
from cueclub.services import sessions

T0 = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def paused_snapshot(seeded) -> SessionSnapshot:
    return SessionSnapshot(
        table_id=seeded.table_id,
        customer_name="Ravi Kumar",
        status=SessionStatus.PAUSED,
        start_time=T0,
        opened_at=T0 - timedelta(minutes=5),
        elapsed_seconds=1234,
        total_pause_duration=56,
        pause_time=T0 + timedelta(seconds=1290, microseconds=250000),
        items=(
            OrderLine(item_id=seeded.cola_id, name="Cola", price=Decimal("30"), quantity=2, category="Drinks"),
            OrderLine(item_id=seeded.chips_id, name="Chips", price=Decimal("20.50"), quantity=1),
        ),
        member_id=seeded.member_id,
    )


def test_every_field_survives_a_round_trip(seeded):
    snapshot = paused_snapshot(seeded)
    with SessionLocal() as writer:
        with atomic(writer):
            created = session_store.create_active_session(writer, snapshot)
    assert created.version == 1

    with SessionLocal() as reader:
        loaded = session_store.get_active_session(reader, seeded.table_id)
    assert loaded == replace(snapshot, version=1)


def test_missing_session_reads_as_idle(db, seeded):
    assert session_store.get_active_session(db, seeded.table_id) is None
    assert session_store.session_status(db, seeded.table_id) == SessionStatus.IDLE


def test_second_create_is_rejected_and_first_untouched(db, seeded):
    with atomic(db):
        session_store.create_active_session(db, paused_snapshot(seeded))

    other = SessionSnapshot(table_id=seeded.table_id, customer_name="Someone else",
                            status=SessionStatus.RUNNING, start_time=T0 + timedelta(hours=1))
    with pytest.raises(SessionAlreadyActive):
        with atomic(db):
            session_store.create_active_session(db, other)

    stored = session_store.get_active_session(db, seeded.table_id)
    assert stored.customer_name == "Ravi Kumar"
    assert stored.start_time == T0


def test_no_double_start_through_service(db, seeded):
    first = sessions.start_session(db, seeded.table_id, now=T0)
    with pytest.raises(SessionAlreadyActive):
        sessions.start_session(db, seeded.table_id, now=T0 + timedelta(minutes=5))
    stored = session_store.get_active_session(db, seeded.table_id)
    assert stored.start_time == T0
    assert stored.version == first.version


def test_update_bumps_version(db, seeded):
    with atomic(db):
        created = session_store.create_active_session(db, paused_snapshot(seeded))
    with atomic(db):
        updated = session_store.update_active_session(db, replace(created, customer_name="Arjun"))
    assert updated.version == created.version + 1
    assert updated.customer_name == "Arjun"


def test_update_with_stale_expected_version_is_rejected(db, seeded):
    with atomic(db):
        created = session_store.create_active_session(db, paused_snapshot(seeded))
    with pytest.raises(ConcurrencyConflict) as exc_info:
        with atomic(db):
            session_store.update_active_session(db, replace(created, customer_name="Arjun"),
                                                expected_version=created.version + 5)
    assert exc_info.value.retryable
    assert session_store.get_active_session(db, seeded.table_id).customer_name == "Ravi Kumar"


def test_concurrent_writer_is_detected(seeded):
    first, second = SessionLocal(), SessionLocal()
    try:
        with atomic(first):
            session_store.create_active_session(first, paused_snapshot(seeded))

        stale = session_store.get_active_session(first, seeded.table_id)
        fresh = session_store.get_active_session(second, seeded.table_id)
        with atomic(second):
            session_store.update_active_session(second, replace(fresh, customer_name="Second terminal"))

        with pytest.raises(ConcurrencyConflict):
            with atomic(first):
                session_store.update_active_session(first, replace(stale, customer_name="First terminal"))
    finally:
        first.close()
        second.close()

    with SessionLocal() as reader:
        assert session_store.get_active_session(reader, seeded.table_id).customer_name == "Second terminal"


def test_delete_checks_version_and_existence(db, seeded):
    with atomic(db):
        created = session_store.create_active_session(db, paused_snapshot(seeded))
    with pytest.raises(ConcurrencyConflict):
        with atomic(db):
            session_store.delete_active_session(db, seeded.table_id, expected_version=created.version + 1)
    with atomic(db):
        session_store.delete_active_session(db, seeded.table_id, expected_version=created.version)
    assert session_store.get_active_session(db, seeded.table_id) is None
    with pytest.raises(NotFound):
        session_store.delete_active_session(db, seeded.table_id)
