"""Usage samples and their per-application aggregation."""
from dataclasses import dataclass
from typing import Dict, Iterable, List

MILLIS_PER_MINUTE = 60_000


@dataclass(frozen=True)
class UsageSample:
    """One OS-reported usage record for a single interval bucket."""

    package_id: str
    total_foreground_ms: int
    last_used_at_ms: int = 0


@dataclass
class UsageAggregate:
    """Per-application totals over a query window."""

    package_id: str
    total_foreground_ms: int
    last_used_at_ms: int = 0


def aggregate(samples: Iterable[UsageSample]) -> List[UsageAggregate]:
    """
    Sum samples per package and rank by total foreground time.

    Samples with no foreground time are dropped. Packages with equal totals
    keep the order in which they first appeared.

    Args:
        samples: Raw samples for the query window

    Returns:
        Aggregates sorted by total foreground time, descending
    """
    totals: Dict[str, UsageAggregate] = {}
    for sample in samples:
        if sample.total_foreground_ms <= 0:
            continue
        entry = totals.get(sample.package_id)
        if entry is None:
            totals[sample.package_id] = UsageAggregate(
                package_id=sample.package_id,
                total_foreground_ms=sample.total_foreground_ms,
                last_used_at_ms=max(0, sample.last_used_at_ms),
            )
        else:
            entry.total_foreground_ms += sample.total_foreground_ms
            entry.last_used_at_ms = max(entry.last_used_at_ms, sample.last_used_at_ms)

    # sorted() is stable, dict preserves first-seen order
    return sorted(totals.values(), key=lambda a: a.total_foreground_ms, reverse=True)


def total_minutes(aggregates: Iterable[UsageAggregate]) -> int:
    """Whole minutes of foreground time, rounded half up."""
    total_ms = sum(max(0, a.total_foreground_ms) for a in aggregates)
    return (total_ms + MILLIS_PER_MINUTE // 2) // MILLIS_PER_MINUTE
