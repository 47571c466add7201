import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)


@dataclass(order=True)
class _Entry:
    due: float
    seq: int
    token: str = field(compare=False)
    interval: Optional[float] = field(default=None, compare=False)


class Scheduler:
    """Virtual-time timer queue keyed by logical tokens.

    Each token names one transition ("sleep-restore", "tap-idle", ...). At most
    one timer per token is live: scheduling a token again replaces the pending
    one. Time only moves when advance() is called, so callers decide what a
    time-unit means.
    """

    def __init__(self, start_time: float = 0.0):
        self.now = start_time
        self._heap: List[_Entry] = []
        self._live: Dict[str, _Entry] = {}
        self._counter = itertools.count()

    def _push(self, due: float, token: str, interval: Optional[float]):
        entry = _Entry(due, next(self._counter), token, interval)
        self._live[token] = entry
        heapq.heappush(self._heap, entry)

    def schedule_once(self, delay: float, token: str):
        if delay < 0:
            raise ValueError("delay must not be negative")
        if token in self._live:
            logger.debug("Replacing pending timer '%s'", token)
        self._push(self.now + delay, token, None)

    def schedule_repeating(self, interval: float, token: str, first_delay: Optional[float] = None):
        if interval <= 0:
            raise ValueError("interval must be positive")
        if token in self._live:
            logger.debug("Replacing pending timer '%s'", token)
        delay = interval if first_delay is None else first_delay
        self._push(self.now + delay, token, interval)

    def cancel(self, token: str) -> bool:
        """Drop the pending timer for token. Returns False if none was live."""
        # Heap entries are discarded lazily when they surface in advance().
        return self._live.pop(token, None) is not None

    def cancel_all(self):
        self._live.clear()
        self._heap.clear()

    def is_scheduled(self, token: str) -> bool:
        return token in self._live

    def remaining(self, token: str) -> Optional[float]:
        entry = self._live.get(token)
        if entry is None:
            return None
        return entry.due - self.now

    def pending(self) -> List[str]:
        return sorted(self._live, key=lambda t: (self._live[t].due, self._live[t].seq))

    def advance(self, dt: float) -> Iterator[str]:
        """Move the clock forward by dt, yielding each token as it comes due.

        Tokens come out in due order (ties in scheduling order). The clock is
        set to the entry's due time before it is yielded, and anything the
        consumer schedules or cancels in between is honoured on the next step.
        """
        if dt < 0:
            raise ValueError("dt must not be negative")
        target = self.now + dt
        while self._heap and self._heap[0].due <= target:
            entry = heapq.heappop(self._heap)
            if self._live.get(entry.token) is not entry:
                continue
            self.now = entry.due
            if entry.interval is not None:
                self._push(entry.due + entry.interval, entry.token, entry.interval)
            else:
                del self._live[entry.token]
            yield entry.token
        self.now = target
