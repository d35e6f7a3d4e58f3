from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import List, NamedTuple, Optional, Set, Tuple, Union


class Fingerprint(NamedTuple):
    """Content-addressing key. Two files are identical iff fingerprints match."""
    size: int
    digest: str

    def __str__(self) -> str:
        return f"{self.size}-{self.digest}"


@dataclass(frozen=True)
class MediaFileRecord:
    """
    Represents a media file found during a scan.
    """
    path: Path
    size_bytes: int
    capture_datetime: datetime
    date_source: str        # exif/birthtime/mtime
    fingerprint: Fingerprint

    # Set when an earlier file in scan order has the same fingerprint
    is_duplicate: bool = False
    duplicate_of: Optional[Path] = None

    @property
    def capture_date(self) -> date:
        return self.capture_datetime.date()


@dataclass(frozen=True)
class MoveOperation:
    source: Path
    target: Path
    target_dir: Path


@dataclass(frozen=True)
class DeleteOperation:
    source: Path
    reason: str


PlannedOperation = Union[MoveOperation, DeleteOperation]


class OverrideKind(Enum):
    IGNORE = 'ignore'
    DELETE = 'delete'
    RENAME = 'rename'


@dataclass(frozen=True)
class Override:
    kind: OverrideKind
    new_path: Optional[Path] = None     # only for RENAME

    @classmethod
    def ignore(cls) -> "Override":
        return cls(OverrideKind.IGNORE)

    @classmethod
    def delete(cls) -> "Override":
        return cls(OverrideKind.DELETE)

    @classmethod
    def rename(cls, new_path: Path) -> "Override":
        return cls(OverrideKind.RENAME, Path(new_path))


@dataclass
class ScanResult:
    files: List[Path]
    visited_dirs: Set[Path]


@dataclass
class ScanProgress:
    """Counters a renderer can poll while a run is in progress."""
    status: str = ""
    files_found: int = 0
    files_processed: int = 0
    duplicates_found: int = 0


@dataclass
class PlanningResult:
    records: List[MediaFileRecord]
    plan: Tuple[PlannedOperation, ...]
    visited_dirs: Set[Path]


@dataclass
class ExecutionResult:
    moved: int = 0
    deleted: int = 0
    skipped: int = 0
    touched_dirs: Set[Path] = field(default_factory=set)
