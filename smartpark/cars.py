import logging
import re
from typing import List, NamedTuple

from .errors import ConflictError, NotFoundError, ValidationError
from .models import RECORD_ACTIVE, Car, ParkingRecord
from .store import EntityStore

logger = logging.getLogger("CarRegistry")

# Rwandan plates: RA + series letter (no I, M, O, Y) + 3 digits + letter
PLATE_RE = re.compile(r"^RA[BCDEFGHJKLNPQRSTUVWXZ][0-9]{3}[A-Z]$")
NAME_RE = re.compile(r"^[A-Za-z '\-]{2,}$")
PHONE_RE = re.compile(r"^07[2389][0-9]{7}$")

CREATED = "created"
UPDATED = "updated"
UNCHANGED = "unchanged"


class EnsureResult(NamedTuple):
    car: Car
    outcome: str  # created, updated, unchanged


def normalize_plate(plate_number) -> str:
    return (plate_number or "").strip().upper()


def validate_plate(plate_number) -> str:
    plate = normalize_plate(plate_number)
    if not PLATE_RE.match(plate):
        raise ValidationError(f"Invalid plate number '{plate_number}', expected e.g. RAB123A")
    return plate


def validate_driver_name(driver_name) -> str:
    name = (driver_name or "").strip()
    if not NAME_RE.match(name):
        raise ValidationError("Driver name must be at least 2 letters (spaces, apostrophes and hyphens allowed)")
    return name


def validate_phone(phone_number) -> str:
    phone = (phone_number or "").strip()
    if not PHONE_RE.match(phone):
        raise ValidationError(f"Invalid phone number '{phone_number}', expected 072/073/078/079 followed by 7 digits")
    return phone


class CarRegistry:
    def __init__(self, store: EntityStore):
        self.store = store

    def ensure(self, plate_number, driver_name, phone_number) -> EnsureResult:
        """Create the car for this plate, or bring its driver details up to date."""
        plate = validate_plate(plate_number)
        name = validate_driver_name(driver_name)
        phone = validate_phone(phone_number)

        with self.store.transaction():
            car = self.store.get(Car, plate)
            if not car:
                car = self.store.create(Car(plate_number=plate, driver_name=name, phone_number=phone))
                logger.info(f"Car {plate} created for {name}")
                return EnsureResult(car, CREATED)

            if car.driver_name == name and car.phone_number == phone:
                return EnsureResult(car, UNCHANGED)

            car.driver_name = name
            car.phone_number = phone
            self.store.update(car)
            logger.info(f"Car {plate} driver details updated")
            return EnsureResult(car, UPDATED)

    def register(self, plate_number, driver_name, phone_number) -> Car:
        plate = validate_plate(plate_number)
        name = validate_driver_name(driver_name)
        phone = validate_phone(phone_number)

        with self.store.transaction():
            if self.store.get(Car, plate):
                raise ConflictError(f"Car {plate} already exists")
            car = self.store.create(Car(plate_number=plate, driver_name=name, phone_number=phone))
        logger.info(f"Car {plate} registered")
        return car

    # --- ADMIN ---
    def get(self, plate_number) -> Car:
        plate = normalize_plate(plate_number)
        car = self.store.get(Car, plate)
        if not car:
            raise NotFoundError(f"Car {plate} not found")
        return car

    def list_all(self) -> List[Car]:
        return self.store.find_by(Car, order_by=Car.plate_number)

    def update(self, plate_number, driver_name, phone_number) -> Car:
        name = validate_driver_name(driver_name)
        phone = validate_phone(phone_number)
        with self.store.transaction():
            car = self.get(plate_number)
            car.driver_name = name
            car.phone_number = phone
            self.store.update(car)
        return car

    def delete(self, plate_number):
        with self.store.transaction():
            car = self.get(plate_number)
            if self.store.find_one_by(ParkingRecord, plate_number=car.plate_number, status=RECORD_ACTIVE):
                raise ConflictError(f"Car {car.plate_number} is currently parked")
            self.store.delete(car)
        logger.info(f"Car {car.plate_number} deleted")
