from datetime import datetime, timedelta, timezone

import pytest

from smartpark.errors import ConflictError, NotFoundError, ValidationError
from smartpark.models import (
    RECORD_ACTIVE,
    RECORD_COMPLETED,
    SLOT_AVAILABLE,
    SLOT_OCCUPIED,
    Car,
    ParkingRecord,
)
from smartpark.sessions import duration_minutes


def enter(workflow, slot="A1", plate="RAB123A", name="Jean Paul", phone="0788123456"):
    return workflow.record_entry(slot, plate, name, phone)


@pytest.mark.parametrize("seconds, minutes", [(0, 0), (1, 1), (60, 1), (61, 2), (90, 2), (3600, 60)])
def test_duration_rounds_partial_minutes_up(seconds, minutes):
    start = datetime(2024, 5, 1, 8, 0, 0)
    assert duration_minutes(start, start + timedelta(seconds=seconds)) == minutes


def test_entry_occupies_slot(workflow, slots, check_slots):
    slots.create("A1")
    record = enter(workflow)

    assert record.id is not None
    assert record.status == RECORD_ACTIVE
    assert record.exit_time is None
    assert record.duration == 0
    assert record.plate_number == "RAB123A"
    assert slots.get("A1").slot_status == SLOT_OCCUPIED
    check_slots()


def test_entry_unknown_slot(workflow):
    with pytest.raises(NotFoundError):
        enter(workflow, slot="Z9")


def test_entry_into_occupied_slot(workflow, slots, store, check_slots):
    slots.create("A1")
    enter(workflow)
    with pytest.raises(ConflictError):
        enter(workflow, plate="RAD456B")
    assert len(store.find_by(ParkingRecord)) == 1
    check_slots()


def test_invalid_car_never_occupies_slot(workflow, slots, store, check_slots):
    slots.create("A1")
    with pytest.raises(ValidationError):
        enter(workflow, phone="12345")

    assert slots.get("A1").slot_status == SLOT_AVAILABLE
    assert store.find_by(ParkingRecord) == []
    check_slots()


def test_repeat_entry_updates_driver(workflow, slots, store):
    slots.create("A1")
    first = enter(workflow)
    workflow.record_exit(first.id)
    enter(workflow, name="Eric Mugisha")

    stored = store.find_by(Car, plate_number="RAB123A")
    assert len(stored) == 1
    assert stored[0].driver_name == "Eric Mugisha"


def test_exit_after_90_seconds(workflow, slots, check_slots):
    slots.create("A1")
    record = enter(workflow)

    done = workflow.record_exit(record.id, record.entry_time + timedelta(seconds=90))
    assert done.duration == 2
    assert done.status == RECORD_COMPLETED
    assert slots.get("A1").slot_status == SLOT_AVAILABLE
    check_slots()


def test_exit_accepts_aware_timestamp(workflow, slots):
    slots.create("A1")
    record = enter(workflow)
    aware = (record.entry_time + timedelta(minutes=5)).astimezone(timezone.utc)

    done = workflow.record_exit(record.id, aware)
    assert done.exit_time.tzinfo is None
    assert done.duration == 5


def test_double_exit_conflicts_and_keeps_first_exit(workflow, slots):
    slots.create("A1")
    record = enter(workflow)
    first_exit = record.entry_time + timedelta(minutes=10)
    workflow.record_exit(record.id, first_exit)

    with pytest.raises(ConflictError):
        workflow.record_exit(record.id, first_exit + timedelta(hours=2))

    again = workflow.get(record.id)
    assert again.exit_time == first_exit
    assert again.duration == 10


def test_exit_before_entry_rejected(workflow, slots):
    slots.create("A1")
    record = enter(workflow)
    with pytest.raises(ValidationError):
        workflow.record_exit(record.id, record.entry_time - timedelta(minutes=1))
    assert workflow.get(record.id).status == RECORD_ACTIVE
    assert slots.get("A1").slot_status == SLOT_OCCUPIED


def test_exit_unknown_record(workflow):
    with pytest.raises(NotFoundError):
        workflow.record_exit(999)


def test_delete_active_record_releases_slot(workflow, slots, check_slots):
    slots.create("A1")
    record = enter(workflow)

    workflow.delete_record(record.id)
    assert slots.get("A1").slot_status == SLOT_AVAILABLE
    with pytest.raises(NotFoundError):
        workflow.get(record.id)
    check_slots()


def test_delete_completed_record_leaves_slot_alone(workflow, slots, check_slots):
    slots.create("A1")
    old = enter(workflow)
    workflow.record_exit(old.id)
    enter(workflow, plate="RAD456B", name="Alice Uwase")

    workflow.delete_record(old.id)
    assert slots.get("A1").slot_status == SLOT_OCCUPIED
    check_slots()

    with pytest.raises(NotFoundError):
        workflow.delete_record(old.id)


def test_second_active_record_on_slot_is_refused(workflow, slots, store, check_slots):
    # Slot reads Available but an Active record already holds it
    slots.create("A1")
    with store.transaction():
        store.create(ParkingRecord(slot_number="A1", plate_number="RAB123A", status=RECORD_ACTIVE))

    with pytest.raises(ConflictError):
        enter(workflow, plate="RAD456B", name="Alice Uwase")

    assert len(store.find_by(ParkingRecord, slot_number="A1", status=RECORD_ACTIVE)) == 1
    assert store.get(Car, "RAD456B") is None


def test_list_newest_first(workflow, slots):
    slots.create("A1")
    slots.create("A2")
    first = enter(workflow)
    second = enter(workflow, slot="A2", plate="RAD456B", name="Alice Uwase")
    assert [r.id for r in workflow.list_all()] == [second.id, first.id]
