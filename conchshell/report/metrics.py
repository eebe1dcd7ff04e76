"""Per-bucket metrics.

A metric accumulates the records that land in one category of one bucket.
``finalize`` runs once after ingestion; timing statistics are only readable
after it.
"""

from __future__ import annotations

from collections import Counter
from statistics import mean, median
from typing import Any, Dict, List, Optional, Protocol


class Metric(Protocol):
    """Interface shared by all bucket metrics."""

    count: int

    def add(self, value: Any = None) -> None: ...

    def finalize(self) -> None: ...

    def to_dict(self) -> Any: ...


class CountMetric:
    """Plain occurrence count. Serializes as an int."""

    def __init__(self) -> None:
        self.count = 0

    def add(self, value: Any = None) -> None:
        self.count += 1

    def finalize(self) -> None:
        return None

    def to_dict(self) -> int:
        return self.count

    def __repr__(self) -> str:
        return f"CountMetric(count={self.count})"


class TallyMetric:
    """Occurrence count per label (e.g. device health within a hardware type)."""

    def __init__(self) -> None:
        self.tally: Counter[str] = Counter()

    @property
    def count(self) -> int:
        return sum(self.tally.values())

    def add(self, value: Any = None) -> None:
        self.tally[str(value)] += 1

    def finalize(self) -> None:
        return None

    def sorted_items(self) -> List[tuple[str, int]]:
        return sorted(self.tally.items())

    def to_dict(self) -> Dict[str, int]:
        return dict(self.tally)

    def __repr__(self) -> str:
        return f"TallyMetric({dict(self.tally)!r})"


class TimingMetric:
    """Collection of duration samples (seconds) with derived mean and median.

    Attributes:
        samples: Durations in seconds, in ingestion order.
    """

    def __init__(self) -> None:
        self.samples: List[float] = []
        self._mean: Optional[float] = None
        self._median: Optional[float] = None
        self._finalized = False

    @property
    def count(self) -> int:
        return len(self.samples)

    def add(self, value: Any = None) -> None:
        if self._finalized:
            raise RuntimeError("Cannot add samples to a finalized TimingMetric")
        self.samples.append(float(value))

    def finalize(self) -> None:
        """Compute mean and median. An empty sample set reports zeros."""
        if self.samples:
            self._mean = float(mean(self.samples))
            self._median = float(median(self.samples))
        else:
            self._mean = 0.0
            self._median = 0.0
        self._finalized = True

    @property
    def finalized(self) -> bool:
        return self._finalized

    @property
    def mean(self) -> float:
        if self._mean is None:
            raise RuntimeError("TimingMetric statistics read before finalize()")
        return self._mean

    @property
    def median(self) -> float:
        if self._median is None:
            raise RuntimeError("TimingMetric statistics read before finalize()")
        return self._median

    def to_dict(self) -> Dict[str, Any]:
        return {"count": self.count, "mean": self.mean, "median": self.median}

    def __repr__(self) -> str:
        return f"TimingMetric(count={self.count}, finalized={self._finalized})"
