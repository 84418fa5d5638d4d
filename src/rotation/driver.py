"""Rotation driver for snapshot retention.

Orchestrates one rotation pass per resource: create a snapshot, list the
resource's snapshots, categorize them and delete those no bucket retained.
Supports both dry-run and execution modes.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from src.models.retention_policy import RetentionPolicy
from src.models.rotation_result import RotationResult, RotationState, RotationStatus
from src.models.snapshot import Snapshot
from src.models.snapshot_record import SnapshotAction, SnapshotRecord
from src.providers.base import DesiredState, OperationHandle, ProviderError, SnapshotProvider
from src.rotation.selector import Selection, categorize

logger = logging.getLogger(__name__)

DRY_RUN_SNAPSHOT_ID = "dry-run-snapshot-id"


class RotationDriver:
    """Rotation driver orchestrator.

    Runs the create → list → categorize → cleanup pass for a resource and
    returns a structured RotationResult. Failures to create or list abort
    the resource; deletion failures are recorded and the pass continues.

    Attributes:
        provider: Snapshot provider to act on
        deletion_timeout: Seconds to wait for each deletion to complete
        wait_for_snapshot: Wait for the new snapshot to complete before listing
    """

    def __init__(
        self,
        provider: SnapshotProvider,
        deletion_timeout: Optional[float] = 300,
        wait_for_snapshot: bool = False,
    ) -> None:
        """Initialize rotation driver.

        Args:
            provider: Snapshot provider instance
            deletion_timeout: Per-snapshot deletion wait in seconds (default: 300)
            wait_for_snapshot: Block until the new snapshot completes (default: False)
        """
        self.provider = provider
        self.deletion_timeout = deletion_timeout
        self.wait_for_snapshot = wait_for_snapshot

    def rotate(self, resource_id: str, policy: RetentionPolicy, dry_run: bool = False) -> RotationResult:
        """Run one rotation pass for a resource.

        Args:
            resource_id: Resource to rotate
            policy: Retention policy for the resource
            dry_run: Simulate create and delete calls (default: False)

        Returns:
            RotationResult describing the outcome

        Raises:
            PolicyError: If the policy violates its invariants
        """
        policy.validate()

        result = RotationResult(
            resource_id=resource_id,
            status=RotationStatus.PLANNED if dry_run else RotationStatus.COMPLETED,
            state=RotationState.START,
            dry_run=dry_run,
            started_at=datetime.now(timezone.utc),
        )

        logger.info(f"Processing resource: {resource_id}{' (dry run)' if dry_run else ''}")

        try:
            result.created_snapshot_id = self._create_snapshot(resource_id, dry_run)
            result.state = RotationState.SNAPSHOT_REQUESTED

            if self.wait_for_snapshot and not dry_run:
                self.provider.wait_for_completion(
                    OperationHandle(snapshot_id=result.created_snapshot_id, operation="create"),
                    DesiredState.COMPLETED,
                )

            snapshots = self._list_snapshots(resource_id)
            result.state = RotationState.LIST_FETCHED
        except ProviderError as e:
            logger.error(f"Rotation of {resource_id} aborted: {e}")
            result.status = RotationStatus.FAILED
            result.error = str(e)
            return self._finish(result)

        selection = categorize(snapshots, policy)
        result.state = RotationState.CATEGORIZED

        for bucket, retained in selection.retained_by_bucket.items():
            for snapshot in retained:
                logger.info(f"  Retaining {snapshot.id} ({snapshot.created_at.isoformat()}) for {bucket}")
                result.records.append(self._record(snapshot, SnapshotAction.RETAINED, bucket=bucket))

        result.state = RotationState.CLEANUP_IN_PROGRESS
        self._cleanup(selection, result)

        if result.failed_ids:
            result.status = RotationStatus.PARTIAL

        result.state = RotationState.DONE
        return self._finish(result)

    def run(
        self,
        resources: Sequence[tuple[str, RetentionPolicy]],
        dry_run: bool = False,
        stop_on_error: bool = False,
    ) -> list[RotationResult]:
        """Rotate several resources one after another.

        Args:
            resources: (resource_id, policy) pairs in processing order
            dry_run: Simulate create and delete calls (default: False)
            stop_on_error: Skip remaining resources after a failed one (default: False)

        Returns:
            One RotationResult per processed resource
        """
        results = []

        for resource_id, policy in resources:
            result = self.rotate(resource_id, policy, dry_run=dry_run)
            results.append(result)

            if stop_on_error and result.status == RotationStatus.FAILED:
                remaining = len(resources) - len(results)
                if remaining:
                    logger.warning(f"Stopping after failure of {resource_id}; {remaining} resource(s) skipped")
                break

        return results

    def _create_snapshot(self, resource_id: str, dry_run: bool) -> str:
        if dry_run:
            logger.info("Dry run: Would create snapshot.")
            return DRY_RUN_SNAPSHOT_ID

        logger.info(f"Creating snapshot for {resource_id}")
        snapshot_id = self.provider.create_snapshot(resource_id)
        logger.info(f"  Created snapshot: {snapshot_id}")
        return snapshot_id

    def _list_snapshots(self, resource_id: str) -> list[Snapshot]:
        """Fetch all snapshots and keep the ones owned by the resource."""
        snapshots = [s for s in self.provider.list_snapshots() if s.resource_id == resource_id]
        logger.debug(f"Found {len(snapshots)} snapshot(s) for {resource_id}")
        return snapshots

    def _cleanup(self, selection: Selection, result: RotationResult) -> None:
        """Delete every snapshot the selection discarded."""
        for snapshot in selection.discarded:
            if result.dry_run:
                logger.info(f"Dry run: Snapshot {snapshot.id} would be deleted")
                result.records.append(self._record(snapshot, SnapshotAction.WOULD_DELETE))
                continue

            try:
                handle = self.provider.delete_snapshot(snapshot.id)
                self.provider.wait_for_completion(handle, DesiredState.DELETED, timeout=self.deletion_timeout)
            except ProviderError as e:
                logger.warning(f"Error deleting snapshot {snapshot.id}: {e}")
                result.records.append(self._record(snapshot, SnapshotAction.DELETE_FAILED, error_message=str(e)))
                continue

            logger.info(f"Deleted snapshot: {snapshot.id}")
            result.records.append(self._record(snapshot, SnapshotAction.DELETED))

    def _record(
        self,
        snapshot: Snapshot,
        action: SnapshotAction,
        bucket: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> SnapshotRecord:
        return SnapshotRecord(
            snapshot_id=snapshot.id,
            resource_id=snapshot.resource_id,
            created_at=snapshot.created_at,
            action=action,
            bucket=bucket,
            error_message=error_message,
        )

    def _finish(self, result: RotationResult) -> RotationResult:
        result.completed_at = datetime.now(timezone.utc)
        if result.started_at:
            result.duration_seconds = (result.completed_at - result.started_at).total_seconds()

        logger.info(
            f"Finished {result.resource_id}: {result.status.value} "
            f"(retained={len(result.retained_ids)}, deleted={len(result.deleted_ids)}, "
            f"failed={len(result.failed_ids)})"
        )
        return result
