import logging
from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from .models import Car, ParkingRecord, Payment
from .store import EntityStore

logger = logging.getLogger("Reporting")


class ReportRow(BaseModel):
    payment_id: int
    driver_name: str
    plate_number: str
    amount_paid: float
    payment_date: datetime


def day_bounds(day: date):
    """Inclusive [start, end] of a calendar day in local time."""
    return datetime.combine(day, time.min), datetime.combine(day, time.max)


class Reporting:
    def __init__(self, store: EntityStore):
        self.store = store

    def payments_for_day(self, day: date) -> List[ReportRow]:
        start, end = day_bounds(day)
        payments = self.store.find_between(
            Payment, "payment_date", start, end, order_by=Payment.payment_date.desc()
        )
        return [self._row(p) for p in payments]

    def _row(self, payment: Payment) -> ReportRow:
        # A broken join blanks this row's driver fields, never the whole report
        driver_name = ""
        plate_number = ""
        try:
            record: Optional[ParkingRecord] = self.store.get(ParkingRecord, payment.parking_record_id)
            if record and record.plate_number:
                plate_number = record.plate_number
                car = self.store.get(Car, plate_number.upper())
                if car:
                    driver_name = car.driver_name
                else:
                    logger.warning(f"Payment {payment.id}: no car registered for {plate_number}")
            else:
                logger.warning(f"Payment {payment.id}: parking record {payment.parking_record_id} is missing")
        except SQLAlchemyError as e:
            logger.warning(f"Payment {payment.id}: lookup failed: {e}")

        return ReportRow(
            payment_id=payment.id,
            driver_name=driver_name,
            plate_number=plate_number,
            amount_paid=payment.amount_paid,
            payment_date=payment.payment_date,
        )
