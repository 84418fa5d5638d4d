"""Bucket selection for snapshot retention.

Decides which snapshots survive a rotation. Bucket types are evaluated in
ascending interval order and each keeps at most one snapshot per interval,
newest first. A snapshot claimed by a smaller bucket is never reconsidered by
a larger one.

Everything in this module is pure: no I/O, and inputs are never mutated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from src.models.retention_policy import BucketType, RetentionPolicy
from src.models.snapshot import Snapshot

logger = logging.getLogger(__name__)

# Fraction of a bucket interval tolerated as cadence jitter
MARGIN_FACTOR = 0.1


@dataclass
class Selection:
    """Outcome of categorizing snapshots against a policy.

    Attributes:
        retained_by_bucket: Bucket name -> snapshots it claimed, newest first
        discarded: Snapshots no bucket claimed, newest first
    """

    retained_by_bucket: dict[str, list[Snapshot]] = field(default_factory=dict)
    discarded: list[Snapshot] = field(default_factory=list)

    @property
    def retained_ids(self) -> frozenset[str]:
        return frozenset(s.id for snapshots in self.retained_by_bucket.values() for s in snapshots)

    def bucket_for(self, snapshot_id: str) -> Optional[str]:
        """Return the bucket that claimed a snapshot, or None if discarded."""
        for name, snapshots in self.retained_by_bucket.items():
            if any(s.id == snapshot_id for s in snapshots):
                return name
        return None


def sort_newest_first(snapshots: Iterable[Snapshot]) -> list[Snapshot]:
    """Sort snapshots by creation time, newest first.

    The sort is stable, so snapshots with equal timestamps keep their input
    order.
    """
    return sorted(snapshots, key=lambda s: s.created_at, reverse=True)


def retain_for_bucket(
    ordered: list[Snapshot],
    bucket: BucketType,
    claimed: frozenset[str] = frozenset(),
) -> list[Snapshot]:
    """Pick the snapshots a single bucket type retains.

    Args:
        ordered: Snapshots sorted newest first
        bucket: Bucket type to evaluate
        claimed: Ids already retained by smaller buckets

    Returns:
        Snapshots retained by this bucket, newest first
    """
    if bucket.limit <= 0:
        return []

    margin = bucket.interval * MARGIN_FACTOR
    retained: list[Snapshot] = []
    last_retained = None

    for snapshot in ordered:
        if snapshot.id in claimed:
            continue

        if last_retained is None or snapshot.created_at < last_retained - bucket.interval + margin:
            last_retained = snapshot.created_at
            retained.append(snapshot)
            logger.debug(f"Bucket {bucket.name} retains {snapshot.id} ({snapshot.created_at.isoformat()})")

            if len(retained) >= bucket.limit:
                break

    return retained


def categorize(snapshots: Iterable[Snapshot], policy: RetentionPolicy) -> Selection:
    """Assign snapshots to retention buckets.

    Args:
        snapshots: Snapshots of one resource, in any order
        policy: Retention policy to apply

    Returns:
        Selection with the snapshots each bucket retained and the rest

    Raises:
        PolicyError: If the policy violates its invariants
    """
    policy.validate()

    ordered = sort_newest_first(snapshots)
    claimed: frozenset[str] = frozenset()
    retained_by_bucket: dict[str, list[Snapshot]] = {}

    for bucket in policy.bucket_types():
        retained = retain_for_bucket(ordered, bucket, claimed)
        retained_by_bucket[bucket.name] = retained
        claimed = claimed | {s.id for s in retained}

    discarded = [s for s in ordered if s.id not in claimed]

    return Selection(retained_by_bucket=retained_by_bucket, discarded=discarded)


def select(snapshots: Iterable[Snapshot], policy: RetentionPolicy) -> frozenset[str]:
    """Return the ids of the snapshots to keep.

    Args:
        snapshots: Snapshots of one resource, in any order
        policy: Retention policy to apply

    Returns:
        Set of retained snapshot ids
    """
    return categorize(snapshots, policy).retained_ids
