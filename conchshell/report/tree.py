"""Report tree: datacenter buckets, rack buckets, and the report root.

Buckets are created lazily the first time a record maps to them. Once the
report is finalized the whole tree is frozen: derived statistics are in place
and any further ingestion raises ``RuntimeError``.

Text renderers walk the tree through the ``sorted_*`` helpers, which return
keys in lexicographic order; ``to_dict`` keeps insertion order.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from conchshell.report.metrics import CountMetric, Metric

MetricFactory = Callable[[], Metric]


def _entry_to_dict(entry: Any) -> Any:
    to_dict = getattr(entry, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return entry


class _Bucket:
    """Shared summary handling for datacenter and rack buckets."""

    def __init__(self, name: str, metric_factory: MetricFactory) -> None:
        self.name = name
        self.summary: Dict[str, Metric] = {}
        self._metric_factory = metric_factory
        self._frozen = False

    def _check_open(self) -> None:
        if self._frozen:
            raise RuntimeError(f"Bucket '{self.name}' is finalized and read-only")

    def metric(self, category: str) -> Metric:
        """Return the summary metric for ``category``, creating it on first use."""
        existing = self.summary.get(category)
        if existing is not None:
            return existing
        self._check_open()
        created = self._metric_factory()
        self.summary[category] = created
        return created

    def sorted_summary(self) -> List[Tuple[str, Metric]]:
        return sorted(self.summary.items())

    def summary_total(self) -> int:
        """Sum of counts across all summary categories."""
        return sum(m.count for m in self.summary.values())

    def _metrics(self) -> Iterator[Metric]:
        yield from self.summary.values()

    def _freeze(self) -> None:
        for m in self._metrics():
            m.finalize()
        self._frozen = True


class RackBucket(_Bucket):
    """Per-rack bucket inside a datacenter.

    Attributes:
        name: Rack name (or the unknown key).
        info: Rack details as reported by the inventory.
        summary: Category -> metric.
        entries: Per-record details kept by report variants that list records
            (e.g. failed devices) rather than only counting them.
    """

    def __init__(
        self,
        name: str,
        info: Optional[Mapping[str, Any]] = None,
        metric_factory: MetricFactory = CountMetric,
    ) -> None:
        super().__init__(name, metric_factory)
        self.info: Dict[str, Any] = dict(info or {})
        self.entries: List[Any] = []

    @property
    def id(self) -> str:
        return str(self.info.get("id", ""))

    def add_entry(self, entry: Any) -> None:
        self._check_open()
        self.entries.append(entry)

    def to_dict(self, entries_key: Optional[str] = None) -> Dict[str, Any]:
        """Serialize the rack.

        Args:
            entries_key: When set, emit ``entries`` under this key instead of
                the summary.
        """
        data: Dict[str, Any] = {"rack": dict(self.info)}
        if entries_key:
            data[entries_key] = [_entry_to_dict(e) for e in self.entries]
        else:
            data["summary"] = {k: m.to_dict() for k, m in self.summary.items()}
        return data


class DatacenterBucket(_Bucket):
    """Top-level bucket for one datacenter.

    Besides the category summary and the rack children, a datacenter can hold
    named two-level breakdowns (``tier -> key -> category -> metric``), e.g.
    failure type by component name, or vendor by failure type.
    """

    def __init__(
        self,
        name: str,
        id: str = "",
        metric_factory: MetricFactory = CountMetric,
    ) -> None:
        super().__init__(name, metric_factory)
        self.id = id
        self.racks: Dict[str, RackBucket] = {}
        self.breakdowns: Dict[str, Dict[str, Dict[str, Metric]]] = {}

    def rack(self, name: str, info: Optional[Mapping[str, Any]] = None) -> RackBucket:
        """Return the rack bucket for ``name``, creating it on first use."""
        existing = self.racks.get(name)
        if existing is not None:
            return existing
        self._check_open()
        created = RackBucket(name, info, self._metric_factory)
        self.racks[name] = created
        return created

    def breakdown_metric(self, tier: str, key: str, category: str) -> Metric:
        """Return the metric at ``breakdowns[tier][key][category]``, creating it lazily."""
        group = self.breakdowns.get(tier, {}).get(key, {})
        existing = group.get(category)
        if existing is not None:
            return existing
        self._check_open()
        created = self._metric_factory()
        self.breakdowns.setdefault(tier, {}).setdefault(key, {})[category] = created
        return created

    def sorted_racks(self) -> List[Tuple[str, RackBucket]]:
        return sorted(self.racks.items())

    def sorted_breakdown(self, tier: str) -> List[Tuple[str, List[Tuple[str, Metric]]]]:
        """Return a breakdown tier with both key levels sorted."""
        return [
            (key, sorted(group.items()))
            for key, group in sorted(self.breakdowns.get(tier, {}).items())
        ]

    def _metrics(self) -> Iterator[Metric]:
        yield from self.summary.values()
        for tier in self.breakdowns.values():
            for group in tier.values():
                yield from group.values()

    def _freeze(self) -> None:
        super()._freeze()
        for rack in self.racks.values():
            rack._freeze()

    def to_dict(self, rack_entries_key: Optional[str] = None) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "datacenter": self.name,
            "id": self.id,
            "summary": {k: m.to_dict() for k, m in self.summary.items()},
        }
        if self.racks:
            data["racks"] = {
                name: rack.to_dict(rack_entries_key) for name, rack in self.racks.items()
            }
        for tier, groups in self.breakdowns.items():
            data[tier] = {
                key: {cat: m.to_dict() for cat, m in group.items()}
                for key, group in groups.items()
            }
        return data


class Report:
    """Root of an aggregation: datacenter name -> :class:`DatacenterBucket`.

    Attributes:
        rack_entries_key: Key under which racks serialize their entries, or
            None when racks serialize a summary.
    """

    def __init__(
        self,
        metric_factory: MetricFactory = CountMetric,
        rack_entries_key: Optional[str] = None,
    ) -> None:
        self.datacenters: Dict[str, DatacenterBucket] = {}
        self.rack_entries_key = rack_entries_key
        self._metric_factory = metric_factory
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def datacenter(self, name: str, id: str = "") -> DatacenterBucket:
        """Return the datacenter bucket for ``name``, creating it on first use."""
        existing = self.datacenters.get(name)
        if existing is not None:
            return existing
        if self._finalized:
            raise RuntimeError("Report is finalized and read-only")
        created = DatacenterBucket(name, id, self._metric_factory)
        self.datacenters[name] = created
        return created

    def finalize(self) -> None:
        """Compute derived statistics and freeze the tree. Idempotent."""
        if self._finalized:
            return
        for dc in self.datacenters.values():
            dc._freeze()
        self._finalized = True

    def sorted_datacenters(self) -> List[Tuple[str, DatacenterBucket]]:
        return sorted(self.datacenters.items())

    def to_dict(self) -> Dict[str, Any]:
        return {
            name: dc.to_dict(self.rack_entries_key)
            for name, dc in self.datacenters.items()
        }

    def __len__(self) -> int:
        return len(self.datacenters)

    def __contains__(self, name: object) -> bool:
        return name in self.datacenters

    def __getitem__(self, name: str) -> DatacenterBucket:
        return self.datacenters[name]
