from smartpark.models import engine, ParkingRecord
from sqlmodel import Session as DbSession, select

with DbSession(engine) as db:
    records = db.exec(select(ParkingRecord).order_by(ParkingRecord.entry_time)).all()
    if not records:
        print('NO_RECORDS')
    for r in records:
        print(r.id, r.slot_number, r.plate_number, r.status, r.entry_time, r.exit_time, r.duration)
