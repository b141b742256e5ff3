import datetime

from daycare_desk.data.store import RecordStore
from daycare_desk.domain.clock import Clock
from daycare_desk.schemas.records import Child


class DailyIdAllocator:
    """
    Hands out the human-facing daily ID: 1, 2, 3, ... per calendar date.
    The counter lives in the store so concurrent registrations on several
    terminals never receive the same number.
    """

    def __init__(self, store: RecordStore, clock: Clock):
        self._store = store
        self._clock = clock

    def allocate_next(self, day: datetime.date) -> int:
        return self._store.next_daily_id(day)

    def allocate_today(self) -> int:
        return self.allocate_next(self._clock.today())

    def register(self, child: Child) -> Child:
        """
        Persist a child under the next ID of its ``registered_on`` date.
        The number is committed together with the child, so a failed insert
        leaves no gap in the day's sequence.

        Returns:
            The stored child carrying its daily ID
        """
        return self._store.add_child(child)
