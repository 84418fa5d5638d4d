"""EBS volume snapshot provider backed by the EC2 API."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, List, Optional

from botocore.exceptions import BotoCoreError, ClientError, WaiterError
from botocore.waiter import WaiterModel, create_waiter_with_client

from ..aws.client import create_boto_client
from ..models.snapshot import Snapshot
from .base import DesiredState, OperationHandle, ProviderError, SnapshotProvider

logger = logging.getLogger(__name__)

MANAGED_TAG_KEY = "snaprotate:managed"

# EC2 has no built-in waiter for snapshot deletion
SNAPSHOT_DELETED_WAITER = {
    "version": 2,
    "waiters": {
        "SnapshotDeleted": {
            "operation": "DescribeSnapshots",
            "delay": 5,
            "maxAttempts": 60,
            "acceptors": [
                {"state": "success", "matcher": "error", "expected": "InvalidSnapshot.NotFound"},
                {"state": "success", "matcher": "path", "argument": "length(Snapshots[]) == `0`", "expected": True},
                {"state": "failure", "matcher": "pathAny", "argument": "Snapshots[].State", "expected": "error"},
            ],
        }
    },
}


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


def _error_message(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Message", str(error))


class EC2SnapshotProvider(SnapshotProvider):
    """Snapshot provider for EBS volumes.

    Resources are EBS volume ids (``vol-...``). Snapshots are listed for the
    calling account only and are owned by the volume they were taken from.

    Attributes:
        region: AWS region (None uses the default resolution chain)
        aws_profile: AWS profile name (optional)
        endpoint_url: Custom EC2 endpoint (optional)
        poll_delay: Seconds between waiter polls
        default_timeout: Seconds to wait when no timeout is given
    """

    def __init__(
        self,
        region: Optional[str] = None,
        aws_profile: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        poll_delay: int = 5,
        default_timeout: float = 300,
    ) -> None:
        """Initialize EC2 snapshot provider.

        Args:
            region: AWS region (optional)
            aws_profile: AWS profile name (optional)
            endpoint_url: Custom EC2 endpoint (optional)
            poll_delay: Seconds between waiter polls (default: 5)
            default_timeout: Default wait timeout in seconds (default: 300)
        """
        self.region = region
        self.aws_profile = aws_profile
        self.endpoint_url = endpoint_url
        self.poll_delay = poll_delay
        self.default_timeout = default_timeout
        self._client: Any = None

    @property
    def name(self) -> str:
        return "ec2"

    @property
    def client(self) -> Any:
        """Lazily created EC2 client."""
        if self._client is None:
            self._client = create_boto_client(
                service_name="ec2",
                region_name=self.region,
                profile_name=self.aws_profile,
                endpoint_url=self.endpoint_url,
            )
        return self._client

    def create_snapshot(self, resource_id: str) -> str:
        """Create a snapshot of an EBS volume.

        Args:
            resource_id: EBS volume id

        Returns:
            New snapshot id

        Raises:
            ProviderError: If EC2 rejects the request
        """
        timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")

        try:
            response = self.client.create_snapshot(
                VolumeId=resource_id,
                Description=f"Created by snaprotate at {timestamp}",
                TagSpecifications=[
                    {
                        "ResourceType": "snapshot",
                        "Tags": [{"Key": MANAGED_TAG_KEY, "Value": "true"}],
                    }
                ],
            )
        except ClientError as e:
            raise ProviderError(
                f"Failed to create snapshot of {resource_id}: {_error_code(e)} - {_error_message(e)}",
                code=_error_code(e),
            ) from e
        except BotoCoreError as e:
            raise ProviderError(f"Failed to create snapshot of {resource_id}: {e}") from e

        return response["SnapshotId"]

    def list_snapshots(self) -> List[Snapshot]:
        """List all snapshots owned by the calling account.

        Returns:
            Snapshots of every volume, in the order EC2 returns them

        Raises:
            ProviderError: If the listing fails
        """
        snapshots = []

        try:
            paginator = self.client.get_paginator("describe_snapshots")

            for page in paginator.paginate(OwnerIds=["self"]):
                for item in page.get("Snapshots", []):
                    snapshots.append(
                        Snapshot(
                            id=item["SnapshotId"],
                            created_at=item["StartTime"],
                            resource_id=item.get("VolumeId", ""),
                            state=item.get("State"),
                            description=item.get("Description"),
                        )
                    )
        except ClientError as e:
            raise ProviderError(
                f"Failed to list snapshots: {_error_code(e)} - {_error_message(e)}",
                code=_error_code(e),
            ) from e
        except BotoCoreError as e:
            raise ProviderError(f"Failed to list snapshots: {e}") from e

        logger.debug(f"Listed {len(snapshots)} snapshots in {self.region or 'default region'}")
        return snapshots

    def delete_snapshot(self, snapshot_id: str) -> OperationHandle:
        """Delete a snapshot.

        A snapshot that no longer exists counts as deleted.

        Args:
            snapshot_id: Snapshot to delete

        Returns:
            Handle for wait_for_completion

        Raises:
            ProviderError: If EC2 refuses the deletion
        """
        try:
            self.client.delete_snapshot(SnapshotId=snapshot_id)
        except ClientError as e:
            error_code = _error_code(e)
            if error_code == "InvalidSnapshot.NotFound":
                logger.info(f"Snapshot {snapshot_id} already deleted")
            else:
                raise ProviderError(
                    f"Failed to delete {snapshot_id}: {error_code} - {_error_message(e)}",
                    code=error_code,
                ) from e
        except BotoCoreError as e:
            raise ProviderError(f"Failed to delete {snapshot_id}: {e}") from e

        return OperationHandle(snapshot_id=snapshot_id, operation="delete")

    def wait_for_completion(
        self,
        handle: OperationHandle,
        desired_state: DesiredState,
        timeout: Optional[float] = None,
    ) -> None:
        """Poll EC2 until a snapshot is completed or gone.

        Args:
            handle: Operation to wait on
            desired_state: COMPLETED or DELETED
            timeout: Maximum seconds to wait (default_timeout if None)

        Raises:
            ProviderError: If the snapshot errors or the wait times out
        """
        timeout = self.default_timeout if timeout is None else timeout
        max_attempts = max(1, math.ceil(timeout / self.poll_delay))

        if desired_state == DesiredState.DELETED:
            waiter = create_waiter_with_client("SnapshotDeleted", WaiterModel(SNAPSHOT_DELETED_WAITER), self.client)
        else:
            waiter = self.client.get_waiter("snapshot_completed")

        try:
            waiter.wait(
                SnapshotIds=[handle.snapshot_id],
                WaiterConfig={"Delay": self.poll_delay, "MaxAttempts": max_attempts},
            )
        except WaiterError as e:
            raise ProviderError(
                f"Snapshot {handle.snapshot_id} did not reach {desired_state.value} within {timeout:g}s: {e}"
            ) from e
        except (ClientError, BotoCoreError) as e:
            raise ProviderError(f"Failed waiting on snapshot {handle.snapshot_id}: {e}") from e
