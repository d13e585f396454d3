from sqlmodel import Session as DbSession
from smartpark.models import engine, create_db_and_tables
from smartpark.slots import SlotManager
from smartpark.store import EntityStore

create_db_and_tables()

with DbSession(engine, expire_on_commit=False) as db:
    print("Checking slots against active parking records...")
    slots = SlotManager(EntityStore(db))
    print(f"Found {len(slots.list_all())} slots")

    fixed = slots.reconcile()
    for slot in fixed:
        print(f"Slot {slot.slot_number} -> {slot.slot_status}")

    print(f"Done. {len(fixed)} slot(s) corrected.")
