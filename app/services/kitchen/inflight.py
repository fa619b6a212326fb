from contextlib import contextmanager


class InFlightItems:
    """
    Item ids with a status change currently being processed.

    Process-local. claim() does check-and-add with no await in between, so on
    a single event loop two coroutines can never both claim the same id.
    """

    def __init__(self):
        self._ids: set[int] = set()

    def claim(self, item_id: int) -> bool:
        if item_id in self._ids:
            return False
        self._ids.add(item_id)
        return True

    def release(self, item_id: int) -> None:
        self._ids.discard(item_id)

    def __contains__(self, item_id: int) -> bool:
        return item_id in self._ids

    @contextmanager
    def hold(self, item_id: int):
        claimed = self.claim(item_id)
        try:
            yield claimed
        finally:
            if claimed:
                self.release(item_id)


inflight_items = InFlightItems()
