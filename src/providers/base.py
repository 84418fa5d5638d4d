"""Base class for snapshot providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..models.snapshot import Snapshot


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class DesiredState(Enum):
    """Terminal state to wait for on an asynchronous provider operation."""

    COMPLETED = "completed"
    DELETED = "deleted"


@dataclass(frozen=True)
class OperationHandle:
    """Reference to an asynchronous provider operation.

    Attributes:
        snapshot_id: Snapshot the operation acts on
        operation: Operation name (e.g., "delete")
    """

    snapshot_id: str
    operation: str


class SnapshotProvider(ABC):
    """Abstract base class for snapshot providers.

    Each provider should:
    1. Create a snapshot of a resource and return its id
    2. List snapshots across all resources it can see
    3. Start a snapshot deletion and return a handle to wait on
    4. Block until an operation reaches a desired state

    All failures must be raised as ProviderError.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name used in logs (e.g., "ec2")."""
        pass

    @abstractmethod
    def create_snapshot(self, resource_id: str) -> str:
        """Create a snapshot of a resource.

        Args:
            resource_id: Resource to snapshot

        Returns:
            Id of the new snapshot
        """
        pass

    @abstractmethod
    def list_snapshots(self) -> List[Snapshot]:
        """List snapshots of every resource.

        Returns:
            Snapshots with their owning resource id set
        """
        pass

    @abstractmethod
    def delete_snapshot(self, snapshot_id: str) -> OperationHandle:
        """Start deleting a snapshot.

        Args:
            snapshot_id: Snapshot to delete

        Returns:
            Handle to pass to wait_for_completion
        """
        pass

    @abstractmethod
    def wait_for_completion(
        self,
        handle: OperationHandle,
        desired_state: DesiredState,
        timeout: Optional[float] = None,
    ) -> None:
        """Block until an operation reaches the desired state.

        Args:
            handle: Operation to wait on
            desired_state: State that ends the wait successfully
            timeout: Maximum seconds to wait (provider default if None)

        Raises:
            ProviderError: If the operation fails or the wait times out
        """
        pass
