from fastapi import FastAPI, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session as DbSession
from contextlib import asynccontextmanager
import logging
from datetime import date as Date, datetime
from typing import Optional
from pydantic import BaseModel, Field

from .config import CORS_ORIGINS, ENFORCE_QUOTED_AMOUNT, LOG_LEVEL
from .models import create_db_and_tables, engine
from .errors import ParkingError, ValidationError
from .store import EntityStore
from .cars import CarRegistry
from .slots import SlotManager
from .sessions import SessionWorkflow
from .fees import FeeEngine
from .payments import PaymentRecorder
from .reports import Reporting

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger("SmartPark")

fee_engine = FeeEngine()

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()

    # Repair slot status left behind by edits made outside the workflow
    with DbSession(engine, expire_on_commit=False) as db:
        fixed = SlotManager(EntityStore(db)).reconcile()
        if fixed:
            logger.warning(f"Reconciled {len(fixed)} slot(s) at startup")
    yield

app = FastAPI(title="SmartPark", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(ParkingError)
async def parking_error_handler(request: Request, exc: ParkingError):
    logger.warning(f"{request.method} {request.url.path} -> {exc.kind}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "error": exc.kind})

@app.get("/")
async def root():
    return RedirectResponse(url="/docs")

# --- MODELS ---
class SlotCreateRequest(BaseModel):
    slot_number: str

class CarRequest(BaseModel):
    plate_number: str
    driver_name: str
    phone_number: str

class CarUpdateRequest(BaseModel):
    driver_name: str
    phone_number: str

class EntryRequest(BaseModel):
    slot_number: str
    plate_number: str
    driver_name: str
    phone_number: str

class ExitRequest(BaseModel):
    exit_time: Optional[datetime] = None

class PaymentRequest(BaseModel):
    parking_record_id: int
    amount_paid: float = Field(gt=0, allow_inf_nan=False)

class FeeResponse(BaseModel):
    parking_record_id: int
    duration: int
    hours: int
    fee: int

# --- DEPENDENCIES ---
def get_db():
    with DbSession(engine, expire_on_commit=False) as db:
        yield db

def get_store(db: DbSession = Depends(get_db)):
    return EntityStore(db)

def get_fee_engine():
    return fee_engine

def get_cars(store: EntityStore = Depends(get_store)):
    return CarRegistry(store)

def get_slots(store: EntityStore = Depends(get_store)):
    return SlotManager(store)

def get_workflow(store: EntityStore = Depends(get_store)):
    return SessionWorkflow(store, CarRegistry(store), SlotManager(store))

def get_payments(store: EntityStore = Depends(get_store), fees: FeeEngine = Depends(get_fee_engine)):
    return PaymentRecorder(store, fees, enforce_quoted_amount=ENFORCE_QUOTED_AMOUNT)

# --- PARKING SLOTS ---

@app.get("/api/parking-slots")
def list_slots(slots: SlotManager = Depends(get_slots)):
    return slots.list_all()

@app.get("/api/parking-slots/available")
def available_slots(slots: SlotManager = Depends(get_slots)):
    return slots.find_available()

@app.post("/api/parking-slots", status_code=201)
def create_slot(req: SlotCreateRequest, slots: SlotManager = Depends(get_slots)):
    return slots.create(req.slot_number)

@app.post("/api/parking-slots/reconcile")
def reconcile_slots(slots: SlotManager = Depends(get_slots)):
    fixed = slots.reconcile()
    return {"ok": True, "fixed": fixed}

@app.get("/api/parking-slots/{slot_number}")
def get_slot(slot_number: str, slots: SlotManager = Depends(get_slots)):
    return slots.get(slot_number)

@app.delete("/api/parking-slots/{slot_number}")
def delete_slot(slot_number: str, slots: SlotManager = Depends(get_slots)):
    slots.delete(slot_number)
    return {"ok": True, "message": "Parking slot deleted successfully"}

# --- CARS ---

@app.get("/api/cars")
def list_cars(cars: CarRegistry = Depends(get_cars)):
    return cars.list_all()

@app.post("/api/cars", status_code=201)
def register_car(req: CarRequest, cars: CarRegistry = Depends(get_cars)):
    return cars.register(req.plate_number, req.driver_name, req.phone_number)

@app.get("/api/cars/{plate_number}")
def get_car(plate_number: str, cars: CarRegistry = Depends(get_cars)):
    return cars.get(plate_number)

@app.put("/api/cars/{plate_number}")
def update_car(plate_number: str, req: CarUpdateRequest, cars: CarRegistry = Depends(get_cars)):
    return cars.update(plate_number, req.driver_name, req.phone_number)

@app.delete("/api/cars/{plate_number}")
def delete_car(plate_number: str, cars: CarRegistry = Depends(get_cars)):
    cars.delete(plate_number)
    return {"ok": True, "message": "Car deleted successfully"}

# --- PARKING RECORDS ---

@app.get("/api/parking-records")
def list_records(workflow: SessionWorkflow = Depends(get_workflow)):
    return workflow.list_all()

@app.post("/api/parking-records", status_code=201)
def enter(req: EntryRequest, workflow: SessionWorkflow = Depends(get_workflow)):
    return workflow.record_entry(req.slot_number, req.plate_number, req.driver_name, req.phone_number)

@app.get("/api/parking-records/{record_id}")
def get_record(record_id: int, workflow: SessionWorkflow = Depends(get_workflow)):
    return workflow.get(record_id)

@app.put("/api/parking-records/{record_id}")
def exit_record(record_id: int, req: Optional[ExitRequest] = None, workflow: SessionWorkflow = Depends(get_workflow)):
    exit_time = req.exit_time if req else None
    return workflow.record_exit(record_id, exit_time)

@app.delete("/api/parking-records/{record_id}")
def delete_record(record_id: int, workflow: SessionWorkflow = Depends(get_workflow)):
    workflow.delete_record(record_id)
    return {"ok": True, "message": "Parking record deleted successfully"}

# --- PAYMENTS ---

@app.get("/api/payments")
def list_payments(payments: PaymentRecorder = Depends(get_payments)):
    return payments.list_all()

@app.post("/api/payments", status_code=201)
def pay(req: PaymentRequest, payments: PaymentRecorder = Depends(get_payments)):
    return payments.pay(req.parking_record_id, req.amount_paid)

@app.get("/api/payments/calculate/{record_id}", response_model=FeeResponse)
def calculate_fee(
    record_id: int,
    workflow: SessionWorkflow = Depends(get_workflow),
    fees: FeeEngine = Depends(get_fee_engine),
):
    record = workflow.get(record_id)
    quote = fees.quote_for_record(record)
    return FeeResponse(parking_record_id=record.id, duration=record.duration, hours=quote.hours, fee=quote.fee)

@app.get("/api/payments/{payment_id}")
def get_payment(payment_id: int, payments: PaymentRecorder = Depends(get_payments)):
    return payments.get(payment_id)

# --- REPORTS ---

@app.get("/api/reports/payments-by-date")
def payments_by_date(date: Optional[str] = None, store: EntityStore = Depends(get_store)):
    if not date:
        raise ValidationError("Date is required")
    try:
        day = Date.fromisoformat(date)
    except ValueError:
        raise ValidationError(f"Invalid date '{date}', expected YYYY-MM-DD")
    return Reporting(store).payments_for_day(day)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
