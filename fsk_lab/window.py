from __future__ import annotations

from bisect import bisect_left
from collections.abc import Sequence
from typing import List, Optional, Tuple
import numpy as np

from utils import WINDOW_DURATION, InvalidParameter, Sample

# Dead prefix entries tolerated before the backing lists are compacted
COMPACT_THRESHOLD = 256


class SampleView(Sequence):
    """Read-only, live view over one sequence of a WindowBuffer."""

    def __init__(self, buf: "WindowBuffer", values: Optional[List[float]]):
        self._buf = buf
        self._values = values   # None -> expose the timestamps themselves

    def __len__(self) -> int:
        return len(self._buf)

    def _item(self, i: int):
        t = self._buf._times[i]
        if self._values is None:
            return t
        return Sample(t, self._values[i])

    def __getitem__(self, index):
        head = self._buf._head
        if isinstance(index, slice):
            return [self._item(head + i) for i in range(*index.indices(len(self)))]
        n = len(self)
        if index < 0:
            index += n
        if not 0 <= index < n:
            raise IndexError("sample index out of range")
        return self._item(head + index)

    def __repr__(self) -> str:
        return f"SampleView(len={len(self)})"


class WindowBuffer:
    """
    Time-ordered signal/symbol history bounded by a trailing duration.

    Both sequences share one timestamp list, so sample i of the signal and
    sample i of the symbol stream always carry the same time. Pruning only
    moves a head offset (found with bisect); the dead prefix is dropped in
    one slice once it grows past COMPACT_THRESHOLD and half of the storage.
    """

    def __init__(self, retention: float = WINDOW_DURATION):
        if not retention > 0:
            raise InvalidParameter(f"Retention must be > 0 seconds (got {retention!r}).")
        self.retention = float(retention)
        self._times: List[float] = []
        self._signal: List[float] = []
        self._symbol: List[float] = []
        self._head = 0

    def __len__(self) -> int:
        return len(self._times) - self._head

    @property
    def times(self) -> SampleView:
        return SampleView(self, None)

    @property
    def signal(self) -> SampleView:
        return SampleView(self, self._signal)

    @property
    def symbols(self) -> SampleView:
        return SampleView(self, self._symbol)

    @property
    def now(self) -> Optional[float]:
        return self._times[-1] if len(self) else None

    @property
    def oldest(self) -> Optional[float]:
        return self._times[self._head] if len(self) else None

    @property
    def duration(self) -> float:
        if not len(self):
            return 0.0
        return self._times[-1] - self._times[self._head]

    def append(self, t: float, signal: float, symbol: float) -> None:
        if len(self) and t <= self._times[-1]:
            raise ValueError(f"Sample time {t!r} does not follow {self._times[-1]!r}.")
        self._times.append(float(t))
        self._signal.append(float(signal))
        self._symbol.append(float(symbol))

    def prune(self, retention: Optional[float] = None) -> int:
        """Drop samples older than `now - retention`. Returns how many were dropped."""
        if not len(self):
            return 0
        keep = self.retention if retention is None else float(retention)
        cutoff = self._times[-1] - keep
        cut = bisect_left(self._times, cutoff, lo=self._head)
        dropped = cut - self._head
        self._head = cut
        if self._head > COMPACT_THRESHOLD and 2 * self._head > len(self._times):
            self._compact()
        return dropped

    def _compact(self) -> None:
        del self._times[:self._head]
        del self._signal[:self._head]
        del self._symbol[:self._head]
        self._head = 0

    def clear(self) -> None:
        self._times.clear()
        self._signal.clear()
        self._symbol.clear()
        self._head = 0

    def to_arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        h = self._head
        return (
            np.array(self._times[h:], dtype=float),
            np.array(self._signal[h:], dtype=float),
            np.array(self._symbol[h:], dtype=float),
        )
