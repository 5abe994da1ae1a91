import threading
from contextlib import contextmanager


class OrderLocks:
    """In-process mutex per order key; idle entries are dropped."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}  # key -> [Lock, holders]

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    self._locks.pop(key, None)

    def __len__(self):
        with self._guard:
            return len(self._locks)
