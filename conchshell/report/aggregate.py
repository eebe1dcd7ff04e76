"""Hierarchical aggregation of inventory records into a report tree.

A single sequential pass buckets records by datacenter, then rack, then
category:

1. ``classify`` maps each record to a :class:`Classification`.
2. Blank keys are replaced by the configured defaults *before* any bucket
   lookup, so every unset rack name lands in the same ``UNKNOWN`` bucket.
3. When a datacenter filter is set, records from other datacenters (exact
   match on datacenter id) are skipped without creating a bucket.
4. The datacenter bucket and, unless the record has no rack tier, the rack
   bucket are fetched or created, and :meth:`Aggregator.ingest` updates them.
5. After the pass the report is finalized: timing statistics are computed
   once and the tree becomes read-only.

Exceptions raised by ``classify`` or ``ingest`` (for example a failed
enrichment lookup) propagate and abort the run; no partial report is
returned.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional

from conchshell.config import REPORT_CONFIG
from conchshell.logging import get_logger
from conchshell.report.normalize import normalize_key
from conchshell.report.tree import (
    DatacenterBucket,
    MetricFactory,
    RackBucket,
    Report,
)
from conchshell.report.metrics import CountMetric

logger = get_logger(__name__)


@dataclass(frozen=True)
class Defaults:
    """Keys used when a record leaves a classification level blank."""

    datacenter: str = REPORT_CONFIG.unknown
    rack: str = REPORT_CONFIG.unknown
    category: str = REPORT_CONFIG.unknown


DEFAULTS = Defaults()


@dataclass(frozen=True)
class Classification:
    """Bucket keys for one record.

    Attributes:
        datacenter: Datacenter name.
        datacenter_id: Datacenter id; the datacenter filter matches on it.
        rack: Rack name. ``None`` means the record has no rack tier.
        category: Category key within the buckets.
        rack_info: Rack details stored on the rack bucket when it is created.
        value: Payload handed to the category metric (a health label, a
            duration sample, ...).
    """

    datacenter: str = ""
    datacenter_id: str = ""
    rack: Optional[str] = ""
    category: str = ""
    rack_info: Mapping[str, Any] = field(default_factory=dict)
    value: Any = None

    def resolve(self, defaults: Defaults = DEFAULTS) -> Classification:
        """Return a copy with blank keys replaced by ``defaults``."""
        return Classification(
            datacenter=normalize_key(self.datacenter, defaults.datacenter),
            datacenter_id=str(self.datacenter_id or ""),
            rack=None if self.rack is None else normalize_key(self.rack, defaults.rack),
            category=normalize_key(self.category, defaults.category),
            rack_info=self.rack_info,
            value=self.value,
        )


Classifier = Callable[[Any], Optional[Classification]]


class Aggregator:
    """Run one aggregation pass over a sequence of records.

    The default :meth:`ingest` adds the classification value to the category
    metric of both the datacenter and the rack bucket. Report variants
    subclass and override it.

    Args:
        classify: Maps a record to its classification. Returning ``None``
            drops the record.
        defaults: Keys for blank classification levels.
        datacenter: Optional datacenter id filter.
        metric_factory: Builds a fresh metric for each new category.
        rack_entries_key: Passed to :class:`Report`.
    """

    def __init__(
        self,
        classify: Classifier,
        *,
        defaults: Defaults = DEFAULTS,
        datacenter: Optional[str] = None,
        metric_factory: MetricFactory = CountMetric,
        rack_entries_key: Optional[str] = None,
    ) -> None:
        self.classify = classify
        self.defaults = defaults
        self.datacenter = datacenter or None
        self.metric_factory = metric_factory
        self.rack_entries_key = rack_entries_key

    def ingest(
        self,
        dc: DatacenterBucket,
        rack: Optional[RackBucket],
        keys: Classification,
        record: Any,
    ) -> None:
        dc.metric(keys.category).add(keys.value)
        if rack is not None:
            rack.metric(keys.category).add(keys.value)

    def run(self, records: Iterable[Any]) -> Report:
        """Aggregate ``records`` and return the finalized report."""
        report = Report(self.metric_factory, self.rack_entries_key)
        seen = 0
        filtered = 0
        dropped = 0

        for record in records:
            seen += 1
            raw = self.classify(record)
            if raw is None:
                dropped += 1
                continue
            keys = raw.resolve(self.defaults)

            if self.datacenter is not None and keys.datacenter_id != self.datacenter:
                filtered += 1
                continue

            dc = report.datacenter(keys.datacenter, keys.datacenter_id)
            rack = None
            if keys.rack is not None:
                rack = dc.rack(keys.rack, keys.rack_info)
            self.ingest(dc, rack, keys, record)

        report.finalize()
        logger.debug(
            f"Aggregated {seen} records into {len(report)} datacenters "
            f"({filtered} filtered, {dropped} dropped)"
        )
        return report


def aggregate(
    records: Iterable[Any],
    classify: Classifier,
    defaults: Defaults = DEFAULTS,
    *,
    datacenter: Optional[str] = None,
    metric_factory: MetricFactory = CountMetric,
) -> Report:
    """Aggregate records with the default ingest behaviour.

    Example:
        >>> rows = [("AZ1", "R1", "CPU"), ("AZ1", "R1", "CPU"), ("AZ1", "R2", "RAM")]
        >>> report = aggregate(
        ...     rows, lambda r: Classification(datacenter=r[0], rack=r[1], category=r[2])
        ... )
        >>> report["AZ1"].to_dict()["summary"]
        {'CPU': 2, 'RAM': 1}
    """
    return Aggregator(
        classify,
        defaults=defaults,
        datacenter=datacenter,
        metric_factory=metric_factory,
    ).run(records)
