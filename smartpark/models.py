from datetime import datetime
from typing import Optional
from sqlalchemy import Column, DateTime, Index, text
from sqlmodel import Field, SQLModel, create_engine

from .config import DATABASE_URL

SLOT_AVAILABLE = "Available"
SLOT_OCCUPIED = "Occupied"

RECORD_ACTIVE = "Active"
RECORD_COMPLETED = "Completed"


class Car(SQLModel, table=True):
    __tablename__ = "cars"

    plate_number: str = Field(primary_key=True)  # always uppercase
    driver_name: str
    phone_number: str
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime, nullable=False))


class ParkingSlot(SQLModel, table=True):
    __tablename__ = "parking_slots"

    slot_number: str = Field(primary_key=True)
    slot_status: str = Field(default=SLOT_AVAILABLE)  # Available, Occupied


class ParkingRecord(SQLModel, table=True):
    __tablename__ = "parking_records"
    # One Active record per slot, even if two entries race each other
    __table_args__ = (
        Index(
            "ux_parking_records_active_slot",
            "slot_number",
            unique=True,
            sqlite_where=text("status = 'Active'"),
            postgresql_where=text("status = 'Active'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    slot_number: str = Field(index=True)
    plate_number: str = Field(index=True)
    entry_time: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime, nullable=False))
    exit_time: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    duration: int = 0  # minutes
    status: str = Field(default=RECORD_ACTIVE)  # Active, Completed


class Payment(SQLModel, table=True):
    __tablename__ = "payments"

    id: Optional[int] = Field(default=None, primary_key=True)
    parking_record_id: int = Field(unique=True, index=True)
    amount_paid: float
    payment_date: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime, nullable=False, index=True))


# Database Setup
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)

def create_db_and_tables(bind=None):
    SQLModel.metadata.create_all(bind or engine)
