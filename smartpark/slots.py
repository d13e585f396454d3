import logging
from typing import List

from .errors import ConflictError, NotFoundError, ValidationError
from .models import RECORD_ACTIVE, SLOT_AVAILABLE, SLOT_OCCUPIED, ParkingRecord, ParkingSlot
from .store import EntityStore

logger = logging.getLogger("SlotManager")


def normalize_slot(slot_number) -> str:
    return (slot_number or "").strip()


class SlotManager:
    def __init__(self, store: EntityStore):
        self.store = store

    def get(self, slot_number) -> ParkingSlot:
        number = normalize_slot(slot_number)
        slot = self.store.get(ParkingSlot, number)
        if not slot:
            raise NotFoundError(f"Parking slot {number} not found")
        return slot

    def list_all(self) -> List[ParkingSlot]:
        return self.store.find_by(ParkingSlot, order_by=ParkingSlot.slot_number)

    def find_available(self) -> List[ParkingSlot]:
        return self.store.find_by(ParkingSlot, order_by=ParkingSlot.slot_number, slot_status=SLOT_AVAILABLE)

    def create(self, slot_number) -> ParkingSlot:
        number = normalize_slot(slot_number)
        if not number:
            raise ValidationError("Slot number is required")
        with self.store.transaction():
            if self.store.get(ParkingSlot, number):
                raise ConflictError(f"Parking slot {number} already exists")
            slot = self.store.create(ParkingSlot(slot_number=number, slot_status=SLOT_AVAILABLE))
        logger.info(f"Slot {number} created")
        return slot

    def occupy(self, slot_number) -> ParkingSlot:
        with self.store.transaction():
            slot = self.get(slot_number)
            if slot.slot_status == SLOT_OCCUPIED:
                raise ConflictError(f"Parking slot {slot.slot_number} is already occupied")
            slot.slot_status = SLOT_OCCUPIED
            self.store.update(slot)
        logger.info(f"Slot {slot.slot_number} occupied")
        return slot

    def release(self, slot_number) -> ParkingSlot:
        with self.store.transaction():
            slot = self.get(slot_number)
            if slot.slot_status != SLOT_AVAILABLE:
                slot.slot_status = SLOT_AVAILABLE
                self.store.update(slot)
                logger.info(f"Slot {slot.slot_number} released")
        return slot

    def delete(self, slot_number):
        with self.store.transaction():
            slot = self.get(slot_number)
            if slot.slot_status == SLOT_OCCUPIED:
                raise ConflictError(f"Parking slot {slot.slot_number} is occupied and cannot be deleted")
            self.store.delete(slot)
        logger.info(f"Slot {slot.slot_number} deleted")

    def reconcile(self) -> List[ParkingSlot]:
        """Recompute every slot's status from the Active parking records.

        Returns the slots whose status had drifted and was corrected.
        """
        changed = []
        with self.store.transaction():
            active = {r.slot_number for r in self.store.find_by(ParkingRecord, status=RECORD_ACTIVE)}
            for slot in self.list_all():
                expected = SLOT_OCCUPIED if slot.slot_number in active else SLOT_AVAILABLE
                if slot.slot_status != expected:
                    logger.warning(f"Slot {slot.slot_number} was {slot.slot_status}, fixing to {expected}")
                    slot.slot_status = expected
                    self.store.update(slot)
                    changed.append(slot)
        return changed
