import threading
from contextlib import contextmanager


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self):
        self.lock = threading.Lock()
        # Number of threads holding or waiting for ``lock``
        self.holders = 0


class KeyedLock:
    """
    Mutual exclusion per key.

    ``acquire(key)`` is a context manager; at most one thread of the process
    is inside it for a given key at any time, while different keys do not
    block each other. Entries are reference counted and dropped as soon as
    nobody holds or waits for them, so the table only contains keys which are
    currently in use.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._entries = {}

    def __len__(self):
        with self._guard:
            return len(self._entries)

    @contextmanager
    def acquire(self, key):
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[key]


#: Serializes changes to the chain of one archived package in this process.
#: Keyed by the identifier of the version being superseded.
previous_version_locks = KeyedLock()
