"""Retention policy model.

Declares how many snapshots to keep per bucket type. Bucket types are a fixed,
ordered set of intervals; smaller intervals get the first claim on snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import timedelta
from typing import Any, Mapping, Optional


class PolicyError(ValueError):
    """Raised when a retention policy violates its invariants."""


# Bucket name -> nominal interval, in evaluation order
BUCKET_INTERVALS: dict[str, timedelta] = {
    "hourly": timedelta(hours=1),
    "daily": timedelta(days=1),
    "weekly": timedelta(days=7),
    "monthly": timedelta(days=30),
    "yearly": timedelta(days=365),
}


@dataclass(frozen=True)
class BucketType:
    """One retention tier with its interval and slot count.

    Attributes:
        name: Bucket name (e.g., "hourly")
        interval: Nominal spacing between retained snapshots
        limit: Maximum number of snapshots this bucket may retain
    """

    name: str
    interval: timedelta
    limit: int


@dataclass(frozen=True)
class RetentionPolicy:
    """Per-bucket retention counts for one resource.

    A count of 0 means the bucket type retains nothing.

    Attributes:
        hourly: Number of hourly snapshots to keep
        daily: Number of daily snapshots to keep
        weekly: Number of weekly snapshots to keep
        monthly: Number of monthly snapshots to keep
        yearly: Number of yearly snapshots to keep
    """

    hourly: int = 0
    daily: int = 0
    weekly: int = 0
    monthly: int = 0
    yearly: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> RetentionPolicy:
        """Build a policy from a configuration mapping.

        Missing or null bucket counts default to 0.

        Args:
            data: Mapping of bucket name to count (may be None)

        Returns:
            Validated RetentionPolicy

        Raises:
            PolicyError: On unknown bucket names, non-integer or negative counts
        """
        if data is None:
            return cls()

        if not isinstance(data, Mapping):
            raise PolicyError(f"Retention policy must be a mapping, got {type(data).__name__}")

        unknown = [key for key in data if key not in BUCKET_INTERVALS]
        if unknown:
            raise PolicyError(
                f"Unknown bucket type(s): {', '.join(map(str, unknown))}. "
                f"Supported: {', '.join(BUCKET_INTERVALS)}"
            )

        counts = {}
        for name, value in data.items():
            if value is None:
                value = 0
            # bool is an int subclass; "hourly: yes" is a config mistake
            if isinstance(value, bool) or not isinstance(value, int):
                raise PolicyError(f"Bucket count for '{name}' must be an integer, got {value!r}")
            counts[name] = value

        policy = cls(**counts)
        policy.validate()
        return policy

    def validate(self) -> bool:
        """Validate policy invariants.

        Returns:
            True if validation passes

        Raises:
            PolicyError: If any count is negative
        """
        for bucket in self.bucket_types():
            if bucket.limit < 0:
                raise PolicyError(f"Bucket count for '{bucket.name}' cannot be negative: {bucket.limit}")

        return True

    def bucket_types(self) -> tuple[BucketType, ...]:
        """Return bucket types in ascending interval order."""
        return tuple(
            BucketType(name=name, interval=interval, limit=getattr(self, name))
            for name, interval in BUCKET_INTERVALS.items()
        )

    @property
    def is_empty(self) -> bool:
        """True if no bucket type retains anything."""
        return all(bucket.limit == 0 for bucket in self.bucket_types())

    @property
    def total_slots(self) -> int:
        """Upper bound on the number of snapshots this policy can retain."""
        return sum(max(bucket.limit, 0) for bucket in self.bucket_types())

    def to_dict(self) -> dict[str, int]:
        """Convert policy to dictionary for serialization."""
        return {f.name: getattr(self, f.name) for f in fields(self)}
