"""Snapshot record model.

Per-snapshot decision taken during a rotation, with result and metadata.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class SnapshotAction(Enum):
    """What happened to a snapshot during rotation."""

    RETAINED = "retained"
    DELETED = "deleted"
    WOULD_DELETE = "would-delete"
    DELETE_FAILED = "delete-failed"


@dataclass
class SnapshotRecord:
    """Snapshot record entity.

    Represents the outcome for a single snapshot of a resource during one
    rotation pass. Each record belongs to a RotationResult.

    Validation rules:
        - action=retained: requires bucket, no error_message
        - action=delete-failed: requires error_message
        - action=deleted/would-delete: no bucket

    Attributes:
        snapshot_id: Provider snapshot identifier
        resource_id: Resource the snapshot belongs to
        created_at: Snapshot creation time
        action: Decision taken for the snapshot
        bucket: Bucket type that claimed the snapshot (retained only)
        error_message: Provider error if deletion failed (optional)
    """

    snapshot_id: str
    resource_id: str
    created_at: datetime
    action: SnapshotAction
    bucket: Optional[str] = None
    error_message: Optional[str] = None

    def validate(self) -> bool:
        """Validate record invariants.

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.action == SnapshotAction.RETAINED:
            if not self.bucket:
                raise ValueError("Retained snapshot requires bucket")
            if self.error_message:
                raise ValueError("Retained snapshot cannot have error message")
        elif self.action == SnapshotAction.DELETE_FAILED:
            if not self.error_message:
                raise ValueError("Failed deletion requires error_message")
        elif self.bucket:
            raise ValueError("Deleted snapshot cannot belong to a bucket")

        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert record to dictionary for serialization."""
        return {
            "snapshot_id": self.snapshot_id,
            "resource_id": self.resource_id,
            "created_at": self.created_at.isoformat(),
            "action": self.action.value,
            "bucket": self.bucket,
            "error_message": self.error_message,
        }
