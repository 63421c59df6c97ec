import threading
import time
from concurrent.futures import Future

DEFAULT_TTL = 6 * 60 * 60


class ResponseCache():
    """Keyed response cache with a TTL and one in-flight fetch per key.

    Concurrent callers for the same key wait on the first caller's Future and
    share its result or its exception. Failed fetches are never stored.
    """

    def __init__(self, ttl=DEFAULT_TTL, clock=time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self.entries = {}
        self.in_flight = {}
        self.lock = threading.Lock()

    def _fresh(self, key):
        entry = self.entries.get(key)
        if entry is None:
            return None
        fetched_at, value = entry
        if self.clock() - fetched_at < self.ttl:
            return entry
        return None

    def peek(self, key):
        with self.lock:
            entry = self._fresh(key)
        if entry:
            return entry[1]

    def invalidate(self, key=None):
        with self.lock:
            if key is None:
                self.entries.clear()
            else:
                self.entries.pop(key, None)

    def get_or_fetch(self, key, fetch, force=False):
        with self.lock:
            if not force:
                entry = self._fresh(key)
                if entry:
                    return entry[1]
                pending = self.in_flight.get(key)
                if pending is not None:
                    owner = False
                else:
                    pending = Future()
                    self.in_flight[key] = pending
                    owner = True
            else:
                pending = Future()
                self.in_flight[key] = pending
                owner = True
        if not owner:
            return pending.result()
        try:
            value = fetch()
        except BaseException as e:
            with self.lock:
                if self.in_flight.get(key) is pending:
                    del self.in_flight[key]
            pending.set_exception(e)
            raise
        with self.lock:
            self.entries[key] = (self.clock(), value)
            if self.in_flight.get(key) is pending:
                del self.in_flight[key]
        pending.set_result(value)
        return value
