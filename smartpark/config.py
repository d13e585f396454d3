import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# --- CONFIGURATION ---
DATABASE_URL = os.getenv("SMARTPARK_DATABASE_URL", "sqlite:///parking.db")
HOURLY_RATE = int(os.getenv("SMARTPARK_HOURLY_RATE", "500"))  # RWF per started hour
MINIMUM_ONE_HOUR = _flag("SMARTPARK_MINIMUM_ONE_HOUR")  # bill 0-minute stays as 1 hour
ENFORCE_QUOTED_AMOUNT = _flag("SMARTPARK_ENFORCE_QUOTED_AMOUNT")
LOG_LEVEL = os.getenv("SMARTPARK_LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("SMARTPARK_CORS_ORIGINS", "*").split(",") if o.strip()]
