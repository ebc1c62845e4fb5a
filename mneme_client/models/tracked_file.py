"""
Mneme Sync Client - Tracked File Model

The closed set of memory files that are synchronized with the coordinator.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from .timestamps import parse_timestamp


@dataclass(frozen=True)
class TrackedFile:
    """A synchronized file: wire name plus the key used by MemoryFolderManager."""
    name: str
    key: str


TRACKED_FILES: List[TrackedFile] = [
    TrackedFile(name="log.jsonl", key="log"),
    TrackedFile(name="summary.json", key="summary_json"),
    TrackedFile(name="remembered.json", key="remembered"),
    TrackedFile(name="entities.json", key="entities"),
]

TRACKED_FILE_NAMES = [tracked.name for tracked in TRACKED_FILES]


@dataclass(frozen=True)
class RemoteFileInfo:
    """Entry from the coordinator's file listing."""
    name: str
    modified_at: datetime
    size: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["RemoteFileInfo"]:
        if not isinstance(data, dict):
            return None
        name = data.get("name")
        modified_at = parse_timestamp(data.get("modifiedAt"))
        if not name or modified_at is None:
            return None
        size = data.get("size")
        return cls(name=str(name), modified_at=modified_at, size=size if isinstance(size, int) else None)

