from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from cueclub.core import session_machine as machine
from cueclub.core.enums import SessionStatus
from cueclub.core.errors import InvalidTransition, SessionAlreadyActive, ValidationFailed

T0 = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def at(seconds: int):
    return T0 + timedelta(seconds=seconds)


def item(item_id=1, name="Cola", price="30", category="Drinks"):
    return SimpleNamespace(id=item_id, name=name, price=Decimal(price), category=category)


def running():
    return machine.start(None, 1, "Walk-in Customer", T0)


def test_start_creates_running_session():
    session = running()
    assert session.status == SessionStatus.RUNNING
    assert session.start_time == T0
    assert session.opened_at == T0
    assert session.elapsed_seconds == 0
    assert session.total_pause_duration == 0
    assert session.customer_name == "Walk-in Customer"
    assert session.member_id is None
    assert session.items == ()


def test_elapsed_is_continuous_across_pauses():
    session = running()
    session = machine.pause(session, at(100))
    assert session.elapsed_seconds == 100

    session = machine.resume(session, at(160))
    assert session.total_pause_duration == 60
    assert session.start_time == T0
    assert machine.current_elapsed(session, at(160)) == 100

    session = machine.pause(session, at(260))
    assert session.elapsed_seconds == 200

    session = machine.resume(session, at(300))
    assert session.total_pause_duration == 100
    assert machine.current_elapsed(session, at(400)) == 300

    session = machine.stop(session, at(400))
    assert session.status == SessionStatus.STOPPED
    assert session.elapsed_seconds == 300


def test_resume_after_stop_rebases_start_time():
    session = machine.stop(running(), at(300))
    assert session.elapsed_seconds == 300

    session = machine.resume(session, at(1000))
    assert session.status == SessionStatus.RUNNING
    assert session.start_time == at(700)
    assert session.opened_at == T0
    assert session.total_pause_duration == 0

    session = machine.pause(session, at(1050))
    assert session.elapsed_seconds == 350


def test_stop_while_paused_keeps_frozen_elapsed():
    session = machine.pause(running(), at(90))
    session = machine.stop(session, at(500))
    assert session.elapsed_seconds == 90
    assert session.pause_time is None


def test_elapsed_never_goes_backwards_when_clock_moves_back():
    session = running()
    assert machine.current_elapsed(session, T0 - timedelta(seconds=30)) == 0


def test_elapsed_truncates_to_whole_seconds():
    session = running()
    assert machine.current_elapsed(session, T0 + timedelta(seconds=59, milliseconds=999)) == 59


def test_transitions_do_not_mutate_input():
    session = running()
    machine.pause(session, at(10))
    assert session.status == SessionStatus.RUNNING
    assert session.elapsed_seconds == 0


@pytest.mark.parametrize("transition", [machine.pause, machine.stop])
def test_pause_and_stop_rejected_when_stopped(transition):
    session = machine.stop(running(), at(10))
    with pytest.raises(InvalidTransition):
        transition(session, at(20))


def test_resume_rejected_while_running():
    with pytest.raises(InvalidTransition):
        machine.resume(running(), at(10))


def test_stop_rejected_before_start():
    with pytest.raises(InvalidTransition):
        machine.stop(machine.new_session(1, "Walk-in Customer"), T0)


@pytest.mark.parametrize("make", [
    lambda: running(),
    lambda: machine.pause(running(), at(5)),
    lambda: machine.stop(running(), at(5)),
])
def test_start_rejected_when_session_active(make):
    with pytest.raises(SessionAlreadyActive):
        machine.start(make(), 1, "Walk-in Customer", at(10))


def test_start_keeps_items_ordered_before_start():
    idle = machine.add_item(machine.new_session(1, "Walk-in Customer"), item())
    idle = machine.set_customer_name(idle, "Arjun")
    session = machine.start(idle, 1, "Walk-in Customer", T0)
    assert session.status == SessionStatus.RUNNING
    assert session.customer_name == "Arjun"
    assert [line.quantity for line in session.items] == [1]


def test_add_item_increments_existing_line():
    session = machine.add_item(running(), item())
    session = machine.add_item(session, item())
    session = machine.add_item(session, item(2, "Chips", "20", "Snacks"))
    assert [(line.item_id, line.quantity) for line in session.items] == [(1, 2), (2, 1)]
    assert session.items[0].total == Decimal("60")


def test_add_item_without_catalog_id_rejected():
    with pytest.raises(ValidationFailed):
        machine.add_item(running(), item(item_id=None))


def test_remove_item_decrements_then_drops_line():
    session = machine.add_item(machine.add_item(running(), item()), item())
    session = machine.remove_item(session, 1)
    assert session.items[0].quantity == 1
    session = machine.remove_item(session, 1)
    assert session.items == ()


def test_remove_absent_item_is_noop():
    session = machine.add_item(running(), item())
    assert machine.remove_item(session, 99) is session


def test_order_line_dict_keeps_price_exact():
    line = machine.OrderLine(item_id=3, name="Tea", price=Decimal("12.50"), quantity=2)
    restored = machine.OrderLine.from_dict(line.to_dict())
    assert restored == line
    assert line.to_dict()["price"] == "12.50"


def test_customer_name_is_trimmed_and_required():
    session = machine.set_customer_name(running(), "  Meera ")
    assert session.customer_name == "Meera"
    with pytest.raises(ValidationFailed):
        machine.set_customer_name(session, "   ")


def test_attach_and_detach_member():
    member = SimpleNamespace(id=7, name="Ravi Kumar")
    session = machine.attach_member(running(), member)
    assert session.member_id == 7
    assert session.customer_name == "Ravi Kumar"

    session = machine.detach_member(session, "Walk-in Customer")
    assert session.member_id is None
    assert session.customer_name == "Walk-in Customer"
