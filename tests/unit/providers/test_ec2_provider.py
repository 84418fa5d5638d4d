"""Tests for EC2SnapshotProvider class.

Test coverage for EBS snapshot operations with boto3 integration.
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, WaiterError
from botocore.waiter import WaiterModel

from src.providers.base import DesiredState, OperationHandle, ProviderError
from src.providers.ec2 import MANAGED_TAG_KEY, SNAPSHOT_DELETED_WAITER, EC2SnapshotProvider


def _client_error(code: str, operation: str = "DeleteSnapshot") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} message"}}, operation)


class TestEC2SnapshotProvider:
    """Test suite for EC2SnapshotProvider."""

    def test_init_with_defaults(self) -> None:
        """Test initialization with default parameters."""
        provider = EC2SnapshotProvider()

        assert provider.name == "ec2"
        assert provider.region is None
        assert provider.aws_profile is None
        assert provider.poll_delay == 5
        assert provider.default_timeout == 300

    @patch("src.providers.ec2.create_boto_client")
    def test_client_created_once(self, mock_create_client: Mock) -> None:
        """Test the EC2 client is created lazily and reused."""
        provider = EC2SnapshotProvider(region="eu-central-1", aws_profile="backup", endpoint_url="http://localhost:4566")

        provider.client
        provider.client

        mock_create_client.assert_called_once_with(
            service_name="ec2",
            region_name="eu-central-1",
            profile_name="backup",
            endpoint_url="http://localhost:4566",
        )

    @patch("src.providers.ec2.create_boto_client")
    def test_create_snapshot(self, mock_create_client: Mock) -> None:
        """Test snapshot creation tags the snapshot and returns its id."""
        mock_client = Mock()
        mock_client.create_snapshot.return_value = {"SnapshotId": "snap-0abc", "State": "pending"}
        mock_create_client.return_value = mock_client

        snapshot_id = EC2SnapshotProvider().create_snapshot("vol-123")

        assert snapshot_id == "snap-0abc"
        kwargs = mock_client.create_snapshot.call_args.kwargs
        assert kwargs["VolumeId"] == "vol-123"
        assert kwargs["Description"].startswith("Created by snaprotate")
        assert kwargs["TagSpecifications"][0]["Tags"] == [{"Key": MANAGED_TAG_KEY, "Value": "true"}]

    @patch("src.providers.ec2.create_boto_client")
    def test_create_snapshot_client_error(self, mock_create_client: Mock) -> None:
        """Test creation errors become ProviderError with the AWS code."""
        mock_client = Mock()
        mock_client.create_snapshot.side_effect = _client_error("InvalidVolume.NotFound", "CreateSnapshot")
        mock_create_client.return_value = mock_client

        with pytest.raises(ProviderError) as exc_info:
            EC2SnapshotProvider().create_snapshot("vol-missing")

        assert exc_info.value.code == "InvalidVolume.NotFound"
        assert "vol-missing" in str(exc_info.value)

    @patch("src.providers.ec2.create_boto_client")
    def test_create_snapshot_connection_error(self, mock_create_client: Mock) -> None:
        """Test transport errors become ProviderError."""
        mock_client = Mock()
        mock_client.create_snapshot.side_effect = EndpointConnectionError(endpoint_url="https://ec2.example")
        mock_create_client.return_value = mock_client

        with pytest.raises(ProviderError):
            EC2SnapshotProvider().create_snapshot("vol-123")

    @patch("src.providers.ec2.create_boto_client")
    def test_list_snapshots_paginates(self, mock_create_client: Mock) -> None:
        """Test listing maps every page into Snapshot objects."""
        created = datetime(2025, 11, 1, 10, 0, tzinfo=timezone.utc)
        mock_client = MagicMock()
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {
                "Snapshots": [
                    {
                        "SnapshotId": "snap-1",
                        "VolumeId": "vol-a",
                        "StartTime": created,
                        "State": "completed",
                        "Description": "nightly",
                    }
                ]
            },
            {"Snapshots": [{"SnapshotId": "snap-2", "VolumeId": "vol-b", "StartTime": created, "State": "pending"}]},
        ]
        mock_client.get_paginator.return_value = paginator
        mock_create_client.return_value = mock_client

        snapshots = EC2SnapshotProvider().list_snapshots()

        mock_client.get_paginator.assert_called_once_with("describe_snapshots")
        paginator.paginate.assert_called_once_with(OwnerIds=["self"])
        assert [s.id for s in snapshots] == ["snap-1", "snap-2"]
        assert snapshots[0].resource_id == "vol-a"
        assert snapshots[0].created_at == created
        assert snapshots[0].description == "nightly"
        assert snapshots[1].state == "pending"

    @patch("src.providers.ec2.create_boto_client")
    def test_list_snapshots_error(self, mock_create_client: Mock) -> None:
        """Test listing errors become ProviderError."""
        mock_client = MagicMock()
        mock_client.get_paginator.return_value.paginate.side_effect = _client_error(
            "UnauthorizedOperation", "DescribeSnapshots"
        )
        mock_create_client.return_value = mock_client

        with pytest.raises(ProviderError) as exc_info:
            EC2SnapshotProvider().list_snapshots()

        assert exc_info.value.code == "UnauthorizedOperation"

    @patch("src.providers.ec2.create_boto_client")
    def test_delete_snapshot(self, mock_create_client: Mock) -> None:
        """Test deletion returns a handle for the snapshot."""
        mock_client = Mock()
        mock_create_client.return_value = mock_client

        handle = EC2SnapshotProvider().delete_snapshot("snap-1")

        mock_client.delete_snapshot.assert_called_once_with(SnapshotId="snap-1")
        assert handle == OperationHandle(snapshot_id="snap-1", operation="delete")

    @patch("src.providers.ec2.create_boto_client")
    def test_delete_snapshot_already_gone(self, mock_create_client: Mock) -> None:
        """Test a missing snapshot counts as deleted."""
        mock_client = Mock()
        mock_client.delete_snapshot.side_effect = _client_error("InvalidSnapshot.NotFound")
        mock_create_client.return_value = mock_client

        handle = EC2SnapshotProvider().delete_snapshot("snap-1")

        assert handle.snapshot_id == "snap-1"

    @patch("src.providers.ec2.create_boto_client")
    def test_delete_snapshot_in_use(self, mock_create_client: Mock) -> None:
        """Test a snapshot backing an AMI cannot be deleted."""
        mock_client = Mock()
        mock_client.delete_snapshot.side_effect = _client_error("InvalidSnapshot.InUse")
        mock_create_client.return_value = mock_client

        with pytest.raises(ProviderError) as exc_info:
            EC2SnapshotProvider().delete_snapshot("snap-1")

        assert exc_info.value.code == "InvalidSnapshot.InUse"


class TestEC2SnapshotProviderWait:
    """Test suite for waiting on snapshot operations."""

    def test_deleted_waiter_model(self) -> None:
        """Test the custom waiter model is valid for botocore."""
        waiter_config = WaiterModel(SNAPSHOT_DELETED_WAITER).get_waiter("SnapshotDeleted")

        assert waiter_config.operation == "DescribeSnapshots"
        assert any(a.matcher == "error" and a.expected == "InvalidSnapshot.NotFound" for a in waiter_config.acceptors)

    @patch("src.providers.ec2.create_waiter_with_client")
    @patch("src.providers.ec2.create_boto_client")
    def test_wait_for_deletion(self, mock_create_client: Mock, mock_create_waiter: Mock) -> None:
        """Test deletion waits poll until the timeout is used up."""
        mock_client = Mock()
        mock_create_client.return_value = mock_client
        waiter = Mock()
        mock_create_waiter.return_value = waiter
        provider = EC2SnapshotProvider(poll_delay=5)

        provider.wait_for_completion(OperationHandle("snap-1", "delete"), DesiredState.DELETED, timeout=62)

        assert mock_create_waiter.call_args.args[0] == "SnapshotDeleted"
        assert mock_create_waiter.call_args.args[2] is mock_client
        waiter.wait.assert_called_once_with(SnapshotIds=["snap-1"], WaiterConfig={"Delay": 5, "MaxAttempts": 13})

    @patch("src.providers.ec2.create_waiter_with_client")
    @patch("src.providers.ec2.create_boto_client")
    def test_wait_uses_default_timeout(self, mock_create_client: Mock, mock_create_waiter: Mock) -> None:
        """Test the provider default applies when no timeout is given."""
        waiter = Mock()
        mock_create_waiter.return_value = waiter
        provider = EC2SnapshotProvider(poll_delay=10, default_timeout=100)

        provider.wait_for_completion(OperationHandle("snap-1", "delete"), DesiredState.DELETED)

        assert waiter.wait.call_args.kwargs["WaiterConfig"] == {"Delay": 10, "MaxAttempts": 10}

    @patch("src.providers.ec2.create_boto_client")
    def test_wait_for_completed_snapshot(self, mock_create_client: Mock) -> None:
        """Test creation waits use the built-in snapshot_completed waiter."""
        mock_client = Mock()
        mock_create_client.return_value = mock_client

        EC2SnapshotProvider().wait_for_completion(OperationHandle("snap-1", "create"), DesiredState.COMPLETED)

        mock_client.get_waiter.assert_called_once_with("snapshot_completed")
        mock_client.get_waiter.return_value.wait.assert_called_once()

    @patch("src.providers.ec2.create_waiter_with_client")
    @patch("src.providers.ec2.create_boto_client")
    def test_wait_timeout_raises_provider_error(self, mock_create_client: Mock, mock_create_waiter: Mock) -> None:
        """Test an exhausted waiter becomes ProviderError."""
        waiter = Mock()
        waiter.wait.side_effect = WaiterError(
            name="SnapshotDeleted", reason="Max attempts exceeded", last_response={}
        )
        mock_create_waiter.return_value = waiter

        with pytest.raises(ProviderError, match="did not reach deleted"):
            EC2SnapshotProvider().wait_for_completion(
                OperationHandle("snap-1", "delete"), DesiredState.DELETED, timeout=10
            )
