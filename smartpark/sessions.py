import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional

from .cars import CarRegistry
from .errors import ConflictError, NotFoundError, ValidationError
from .models import RECORD_ACTIVE, RECORD_COMPLETED, SLOT_OCCUPIED, ParkingRecord
from .slots import SlotManager
from .store import EntityStore

logger = logging.getLogger("SessionWorkflow")


def to_local(ts: datetime) -> datetime:
    """Stored timestamps are naive local time; convert aware inputs to match."""
    if ts.tzinfo is not None:
        return ts.astimezone().replace(tzinfo=None)
    return ts


def duration_minutes(entry_time: datetime, exit_time: datetime) -> int:
    # Partial minutes round up: a 1 second stay is 1 minute
    return math.ceil((exit_time - entry_time) / timedelta(minutes=1))


class SessionWorkflow:
    """Entry and exit of a car, keeping slot, car and parking record consistent.

    Each operation runs in one store transaction so a failure part way
    through leaves nothing behind.
    """

    def __init__(self, store: EntityStore, cars: CarRegistry, slots: SlotManager):
        self.store = store
        self.cars = cars
        self.slots = slots

    def get(self, record_id) -> ParkingRecord:
        record = self.store.get(ParkingRecord, record_id)
        if not record:
            raise NotFoundError(f"Parking record {record_id} not found")
        return record

    def list_all(self) -> List[ParkingRecord]:
        return self.store.find_by(ParkingRecord, order_by=(ParkingRecord.entry_time.desc(), ParkingRecord.id.desc()))

    def record_entry(self, slot_number, plate_number, driver_name, phone_number) -> ParkingRecord:
        with self.store.transaction():
            slot = self.slots.get(slot_number)
            if slot.slot_status == SLOT_OCCUPIED:
                raise ConflictError(f"Parking slot {slot.slot_number} is already occupied")

            # Car first: a validation failure must never occupy the slot
            car = self.cars.ensure(plate_number, driver_name, phone_number).car

            record = self.store.create(ParkingRecord(
                slot_number=slot.slot_number,
                plate_number=car.plate_number,
                entry_time=datetime.now(),
                exit_time=None,
                duration=0,
                status=RECORD_ACTIVE,
            ))
            self.slots.occupy(slot.slot_number)

        logger.info(f"Entry: record {record.id} car {car.plate_number} in slot {slot.slot_number}")
        return record

    def record_exit(self, record_id, exit_time: Optional[datetime] = None) -> ParkingRecord:
        with self.store.transaction():
            record = self.get(record_id)
            if record.status == RECORD_COMPLETED:
                raise ConflictError(f"Parking record {record_id} is already completed")

            exit_time = to_local(exit_time) if exit_time else datetime.now()
            if exit_time < record.entry_time:
                raise ValidationError(f"Exit time {exit_time.isoformat()} is before entry time {record.entry_time.isoformat()}")

            record.exit_time = exit_time
            record.duration = duration_minutes(record.entry_time, exit_time)
            record.status = RECORD_COMPLETED
            self.store.update(record)

            # Leaving frees the slot whether or not the stay is paid yet
            self.slots.release(record.slot_number)

        logger.info(f"Exit: record {record.id} slot {record.slot_number} after {record.duration} min")
        return record

    def delete_record(self, record_id):
        with self.store.transaction():
            record = self.get(record_id)
            if record.status == RECORD_ACTIVE:
                self.slots.release(record.slot_number)
            self.store.delete(record)
        logger.info(f"Parking record {record_id} deleted")
