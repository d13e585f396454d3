import logging
import math
from datetime import datetime
from typing import List

from .config import ENFORCE_QUOTED_AMOUNT
from .errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from .fees import FeeEngine
from .models import RECORD_COMPLETED, ParkingRecord, Payment
from .store import EntityStore

logger = logging.getLogger("PaymentRecorder")


class PaymentRecorder:
    def __init__(self, store: EntityStore, fees: FeeEngine, enforce_quoted_amount: bool = ENFORCE_QUOTED_AMOUNT):
        self.store = store
        self.fees = fees
        self.enforce_quoted_amount = enforce_quoted_amount

    def get(self, payment_id) -> Payment:
        payment = self.store.get(Payment, payment_id)
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found")
        return payment

    def list_all(self) -> List[Payment]:
        return self.store.find_by(Payment, order_by=Payment.payment_date.desc())

    def pay(self, record_id, amount_paid) -> Payment:
        if amount_paid is None or not math.isfinite(amount_paid) or amount_paid <= 0:
            raise ValidationError("Amount paid must be a positive number")

        with self.store.transaction():
            record = self.store.get(ParkingRecord, record_id)
            if not record:
                raise NotFoundError(f"Parking record {record_id} not found")
            if record.status != RECORD_COMPLETED:
                raise InvalidStateError(f"Cannot create payment for active parking record {record_id}")
            if self.store.find_one_by(Payment, parking_record_id=record.id):
                raise ConflictError(f"Payment already exists for parking record {record_id}")

            if self.enforce_quoted_amount:
                quote = self.fees.quote_for_record(record)
                if amount_paid != quote.fee:
                    raise ValidationError(f"Amount paid {amount_paid} does not match the fee of {quote.fee}")

            payment = self.store.create(Payment(
                parking_record_id=record.id,
                amount_paid=amount_paid,
                payment_date=datetime.now(),
            ))

        logger.info(f"Payment {payment.id}: {amount_paid} for record {record.id}")
        return payment
