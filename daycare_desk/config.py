import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = Path(os.environ.get("DAYCARE_DATA_DIR", BASE_DIR / "data"))

DATABASE_URL = os.environ.get("DAYCARE_DATABASE_URL", f"sqlite:///{DATA_DIR / 'daycare.sqlite3'}")
STORE_BACKEND = os.environ.get("DAYCARE_STORE", "sql")  # sql or memory

SECRET_KEY = os.environ.get("DAYCARE_SECRET_KEY", "dev-secret-change-me")
TOKEN_EXPIRE_MINUTES = int(os.environ.get("DAYCARE_TOKEN_EXPIRE_MINUTES", "720"))

# Calendar-day boundary for daily IDs and the active view
TIMEZONE = os.environ.get("DAYCARE_TIMEZONE", "UTC")

WEBHOOK_URL = os.environ.get("DAYCARE_WEBHOOK_URL", "")
WEBHOOK_TIMEOUT = float(os.environ.get("DAYCARE_WEBHOOK_TIMEOUT", "8"))

LOG_LEVEL = os.environ.get("DAYCARE_LOG_LEVEL", "INFO")

UPCOMING_PICKUP_MINUTES = int(os.environ.get("DAYCARE_UPCOMING_PICKUP_MINUTES", "30"))
MIN_PASSWORD_LENGTH = 6

DEFAULT_SETTINGS = {
    "webhook_url": "",
    "template_emergency": "There's an emergency. Please contact the daycare immediately.",
    "template_child_wishes": "Your child wishes to be picked up.",
    "template_pickup_time": "It's your scheduled pickup time.",
}
