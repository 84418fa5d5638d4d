"""Rotation result model.

Represents the outcome of one rotation pass over a single resource.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from src.models.snapshot_record import SnapshotAction, SnapshotRecord


class RotationStatus(Enum):
    """Overall outcome of a resource rotation."""

    PLANNED = "planned"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


class RotationState(Enum):
    """Progress of a rotation through its single linear pass.

    State transitions:
        start → snapshot-requested → list-fetched → categorized
              → cleanup-in-progress → done
    """

    START = "start"
    SNAPSHOT_REQUESTED = "snapshot-requested"
    LIST_FETCHED = "list-fetched"
    CATEGORIZED = "categorized"
    CLEANUP_IN_PROGRESS = "cleanup-in-progress"
    DONE = "done"


@dataclass
class RotationResult:
    """Rotation result entity.

    Tracks how far a rotation got, the snapshot it created and what happened
    to every snapshot of the resource.

    State transitions:
        planned (dry-run, reached done)
        completed (all deletions succeeded)
        partial (some deletions failed)
        failed (create or list failed; rotation aborted)

    Attributes:
        resource_id: Resource that was rotated
        status: Overall outcome
        state: Last state reached
        dry_run: Whether mutating calls were simulated
        created_snapshot_id: Snapshot created by this pass (placeholder in dry-run)
        records: One record per snapshot of the resource
        error: Error that aborted the rotation (failed status only)
        started_at: When the rotation started
        completed_at: When the rotation finished
        duration_seconds: Total rotation duration
    """

    resource_id: str
    status: RotationStatus
    state: RotationState
    dry_run: bool = False
    created_snapshot_id: Optional[str] = None
    records: list[SnapshotRecord] = field(default_factory=list)
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    def _ids(self, action: SnapshotAction) -> list[str]:
        return [r.snapshot_id for r in self.records if r.action == action]

    @property
    def retained_ids(self) -> list[str]:
        return self._ids(SnapshotAction.RETAINED)

    @property
    def deleted_ids(self) -> list[str]:
        """Snapshots deleted, or that would be deleted in dry-run."""
        action = SnapshotAction.WOULD_DELETE if self.dry_run else SnapshotAction.DELETED
        return self._ids(action)

    @property
    def failed_ids(self) -> list[str]:
        return self._ids(SnapshotAction.DELETE_FAILED)

    @property
    def succeeded(self) -> bool:
        return self.status in (RotationStatus.PLANNED, RotationStatus.COMPLETED)

    def validate(self) -> bool:
        """Validate result invariants.

        Validation rules:
            - failed status requires an error and must not have reached done
            - partial status requires at least one failed deletion
            - dry-run results never contain executed deletions
            - completed_at must be after started_at

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.status == RotationStatus.FAILED:
            if not self.error:
                raise ValueError("Failed status requires error")
            if self.state == RotationState.DONE:
                raise ValueError("Failed rotation cannot reach done state")

        if self.status == RotationStatus.PARTIAL and not self.failed_ids:
            raise ValueError("Partial status requires at least one failed deletion")

        if self.dry_run:
            if self.status not in (RotationStatus.PLANNED, RotationStatus.FAILED):
                raise ValueError("Dry-run must have planned or failed status")
            if self._ids(SnapshotAction.DELETED) or self.failed_ids:
                raise ValueError("Dry-run cannot delete snapshots")

        if self.completed_at and self.started_at:
            if self.completed_at < self.started_at:
                raise ValueError("Completion time before start time")

        for record in self.records:
            record.validate()

        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "resource_id": self.resource_id,
            "status": self.status.value,
            "state": self.state.value,
            "dry_run": self.dry_run,
            "created_snapshot_id": self.created_snapshot_id,
            "error": self.error,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "records": [record.to_dict() for record in self.records],
        }
