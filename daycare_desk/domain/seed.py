from daycare_desk.config import DEFAULT_SETTINGS
from daycare_desk.data.store import RecordStore


def seed_settings(store: RecordStore) -> None:
    """Insert default webhook and message template settings that are not yet present."""
    existing = store.list_settings()
    for key, value in DEFAULT_SETTINGS.items():
        if key not in existing:
            store.upsert_setting(key, value)
