"""Snapshot data model representing one point-in-time copy of a volume."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Snapshot:
    """Represents a provider snapshot of a single resource.

    Snapshots are produced by the provider. The rotation engine only
    classifies them; it never creates or modifies one.
    """

    id: str
    created_at: datetime
    resource_id: str = ""
    state: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert snapshot to dictionary for serialization."""
        return {
            "id": self.id,
            "resource_id": self.resource_id,
            "created_at": self.created_at.isoformat(),
            "state": self.state,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        """Create snapshot from dictionary."""
        created_at = data["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)

        return cls(
            id=data["id"],
            created_at=created_at,
            resource_id=data.get("resource_id", ""),
            state=data.get("state"),
            description=data.get("description"),
        )
