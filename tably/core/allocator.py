from tably.core.repository import EntryRepository


class PositionAllocator:
    """Hands out the next slot number at the back of the waiting line.

    Callers must hold `QueueAPI.join_lock` between allocating and
    persisting, otherwise two joins can read the same maximum.
    """

    def __init__(self, repository: EntryRepository):
        self.repository = repository

    def next_position(self) -> int:
        last = self.repository.max_waiting_position()
        return last + 1 if last else 1
