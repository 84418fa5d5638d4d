"""Tests for RotationResult and SnapshotRecord models."""

from __future__ import annotations

from datetime import timedelta

import pytest

from src.models.rotation_result import RotationResult, RotationState, RotationStatus
from src.models.snapshot import Snapshot
from src.models.snapshot_record import SnapshotAction, SnapshotRecord
from tests.fixtures.snapshots import BASE_TIME, VOLUME_ID


def _record(snapshot_id: str, action: SnapshotAction, **kwargs) -> SnapshotRecord:
    return SnapshotRecord(snapshot_id, VOLUME_ID, BASE_TIME, action, **kwargs)


class TestSnapshotRecord:
    """Test suite for SnapshotRecord validation."""

    def test_retained_requires_bucket(self) -> None:
        """Test retained records need the claiming bucket."""
        with pytest.raises(ValueError, match="bucket"):
            _record("snap-1", SnapshotAction.RETAINED).validate()

    def test_failed_requires_error(self) -> None:
        """Test failed deletions need an error message."""
        with pytest.raises(ValueError, match="error_message"):
            _record("snap-1", SnapshotAction.DELETE_FAILED).validate()

    def test_deleted_cannot_have_bucket(self) -> None:
        """Test deleted records cannot claim a bucket."""
        with pytest.raises(ValueError, match="bucket"):
            _record("snap-1", SnapshotAction.DELETED, bucket="daily").validate()

    def test_valid_records(self) -> None:
        """Test well-formed records pass."""
        assert _record("a", SnapshotAction.RETAINED, bucket="hourly").validate()
        assert _record("b", SnapshotAction.DELETED).validate()
        assert _record("c", SnapshotAction.WOULD_DELETE).validate()
        assert _record("d", SnapshotAction.DELETE_FAILED, error_message="boom").validate()

    def test_to_dict(self) -> None:
        """Test serialization."""
        data = _record("a", SnapshotAction.RETAINED, bucket="weekly").to_dict()

        assert data["action"] == "retained"
        assert data["bucket"] == "weekly"
        assert data["created_at"] == BASE_TIME.isoformat()


class TestRotationResult:
    """Test suite for RotationResult."""

    def test_id_accessors(self) -> None:
        """Test ids are grouped by action."""
        result = RotationResult(
            resource_id=VOLUME_ID,
            status=RotationStatus.PARTIAL,
            state=RotationState.DONE,
            records=[
                _record("keep", SnapshotAction.RETAINED, bucket="daily"),
                _record("gone", SnapshotAction.DELETED),
                _record("stuck", SnapshotAction.DELETE_FAILED, error_message="timeout"),
            ],
        )

        assert result.retained_ids == ["keep"]
        assert result.deleted_ids == ["gone"]
        assert result.failed_ids == ["stuck"]
        assert not result.succeeded
        assert result.validate()

    def test_dry_run_deleted_ids_are_planned_deletions(self) -> None:
        """Test deleted_ids reports would-be deletions in dry-run."""
        result = RotationResult(
            resource_id=VOLUME_ID,
            status=RotationStatus.PLANNED,
            state=RotationState.DONE,
            dry_run=True,
            records=[_record("old", SnapshotAction.WOULD_DELETE)],
        )

        assert result.deleted_ids == ["old"]
        assert result.succeeded
        assert result.validate()

    def test_failed_requires_error(self) -> None:
        """Test failed status needs an error."""
        result = RotationResult(resource_id=VOLUME_ID, status=RotationStatus.FAILED, state=RotationState.START)

        with pytest.raises(ValueError, match="error"):
            result.validate()

    def test_failed_cannot_reach_done(self) -> None:
        """Test a failed rotation never completes its pass."""
        result = RotationResult(
            resource_id=VOLUME_ID, status=RotationStatus.FAILED, state=RotationState.DONE, error="boom"
        )

        with pytest.raises(ValueError, match="done"):
            result.validate()

    def test_partial_requires_failed_deletion(self) -> None:
        """Test partial status needs a failed deletion."""
        result = RotationResult(resource_id=VOLUME_ID, status=RotationStatus.PARTIAL, state=RotationState.DONE)

        with pytest.raises(ValueError, match="Partial"):
            result.validate()

    def test_dry_run_cannot_delete(self) -> None:
        """Test dry-run results never contain executed deletions."""
        result = RotationResult(
            resource_id=VOLUME_ID,
            status=RotationStatus.PLANNED,
            state=RotationState.DONE,
            dry_run=True,
            records=[_record("old", SnapshotAction.DELETED)],
        )

        with pytest.raises(ValueError, match="Dry-run"):
            result.validate()

    def test_timing_validation(self) -> None:
        """Test completion must not precede start."""
        result = RotationResult(
            resource_id=VOLUME_ID,
            status=RotationStatus.COMPLETED,
            state=RotationState.DONE,
            started_at=BASE_TIME,
            completed_at=BASE_TIME - timedelta(seconds=1),
        )

        with pytest.raises(ValueError, match="Completion"):
            result.validate()

    def test_to_dict(self) -> None:
        """Test serialization."""
        result = RotationResult(
            resource_id=VOLUME_ID,
            status=RotationStatus.COMPLETED,
            state=RotationState.DONE,
            created_snapshot_id="snap-new",
            started_at=BASE_TIME,
            records=[_record("snap-new", SnapshotAction.RETAINED, bucket="hourly")],
        )

        data = result.to_dict()

        assert data["status"] == "completed"
        assert data["state"] == "done"
        assert data["started_at"] == BASE_TIME.isoformat()
        assert data["completed_at"] is None
        assert data["records"][0]["snapshot_id"] == "snap-new"


class TestSnapshot:
    """Test suite for Snapshot model."""

    def test_round_trip(self) -> None:
        """Test to_dict/from_dict preserve fields."""
        snapshot = Snapshot(
            id="snap-1", created_at=BASE_TIME, resource_id=VOLUME_ID, state="completed", description="nightly"
        )

        assert Snapshot.from_dict(snapshot.to_dict()) == snapshot

    def test_from_dict_defaults(self) -> None:
        """Test optional fields default."""
        snapshot = Snapshot.from_dict({"id": "snap-1", "created_at": BASE_TIME})

        assert snapshot.resource_id == ""
        assert snapshot.state is None

    def test_immutable(self) -> None:
        """Test snapshots cannot be modified."""
        snapshot = Snapshot(id="snap-1", created_at=BASE_TIME)

        with pytest.raises(AttributeError):
            snapshot.id = "snap-2"  # type: ignore[misc]
