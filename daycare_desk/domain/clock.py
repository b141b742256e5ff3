import datetime
from zoneinfo import ZoneInfo


def resolve_timezone(name: str) -> datetime.tzinfo:
    if name.upper() == "UTC":
        return datetime.timezone.utc
    return ZoneInfo(name)


class Clock:
    """
    Source of "now" and of the calendar day used for daily IDs.
    The day boundary follows the configured timezone, not the host's.
    """

    def __init__(self, timezone: str = "UTC"):
        self.tz = resolve_timezone(timezone)

    def now(self) -> datetime.datetime:
        return datetime.datetime.now(self.tz)

    def today(self) -> datetime.date:
        return self.now().date()

    def start_of(self, day: datetime.date) -> datetime.datetime:
        """Aware local midnight that opens ``day``."""
        return datetime.datetime.combine(day, datetime.time(), tzinfo=self.tz)
