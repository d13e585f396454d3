import math
from pydantic import BaseModel

from .config import HOURLY_RATE, MINIMUM_ONE_HOUR
from .errors import InvalidStateError, ValidationError
from .models import RECORD_COMPLETED, ParkingRecord


class FeeQuote(BaseModel):
    hours: int
    fee: int


class FeeEngine:
    """Turns a parking duration into a fee: every started hour is billed at the hourly rate."""

    def __init__(self, rate_per_hour: int = HOURLY_RATE, minimum_one_hour: bool = MINIMUM_ONE_HOUR):
        self.rate_per_hour = rate_per_hour
        self.minimum_one_hour = minimum_one_hour

    def quote(self, duration_minutes: int) -> FeeQuote:
        if duration_minutes is None or duration_minutes < 0:
            raise ValidationError(f"Duration must be a non-negative number of minutes, got {duration_minutes}")
        hours = math.ceil(duration_minutes / 60)
        if hours == 0 and self.minimum_one_hour:
            hours = 1
        return FeeQuote(hours=hours, fee=hours * self.rate_per_hour)

    def quote_for_record(self, record: ParkingRecord) -> FeeQuote:
        if record.status != RECORD_COMPLETED:
            raise InvalidStateError(f"Cannot calculate fee for active parking record {record.id}")
        return self.quote(record.duration)
