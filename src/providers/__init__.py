"""Snapshot providers.

Classes:
    SnapshotProvider: Abstract provider interface
    EC2SnapshotProvider: EBS volume snapshots through the EC2 API
"""

from __future__ import annotations

from .base import DesiredState, OperationHandle, ProviderError, SnapshotProvider
from .ec2 import EC2SnapshotProvider

__all__ = [
    "DesiredState",
    "EC2SnapshotProvider",
    "OperationHandle",
    "ProviderError",
    "SnapshotProvider",
]
