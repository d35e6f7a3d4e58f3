import itertools
import logging
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .. import config
from ..exceptions import FileHashError
from ..models import (
    DeleteOperation,
    Fingerprint,
    MediaFileRecord,
    MoveOperation,
    PlannedOperation,
)
from ..scanning.hasher import FileHasher


def target_dir_for(root: Path, capture_date: date) -> Path:
    """<root>/<YYYY>/<YYYY-MM-DD>"""
    return root / config.FOLDER_PATTERN.format(
        year=capture_date.year, month=capture_date.month, day=capture_date.day
    )


def candidate_names(filename: str) -> Iterator[str]:
    """photo.jpg, photo-1.jpg, photo-2.jpg, ... without end."""
    stem = Path(filename).stem
    ext = Path(filename).suffix
    yield filename
    for n in itertools.count(1):
        yield config.CONFLICT_NAME_PATTERN.format(base=stem, n=n, ext=ext)


class DestinationPlanner:
    def __init__(self, hasher: Optional[FileHasher] = None):
        self.hasher = hasher or FileHasher()
        # Targets already handed out in this plan, with the content moving there
        self.claimed: Dict[Path, Fingerprint] = {}

    def plan(self, records: Iterable[MediaFileRecord], root: Path) -> Tuple[PlannedOperation, ...]:
        """
        Main entry point. Produces one operation per record that needs one,
        in the order the records were scanned.
        """
        self.claimed = {}
        ops: List[PlannedOperation] = []

        for rec in records:
            if rec.is_duplicate:
                ops.append(DeleteOperation(rec.path, config.DUPLICATE_REASON.format(path=rec.duplicate_of)))
                continue

            target_dir = target_dir_for(root, rec.capture_date)
            if rec.path == target_dir / rec.path.name:
                # Already organized
                continue

            ops.append(self.resolve_destination(rec, target_dir))

        logging.debug(f"Planned {len(ops)} operations")
        return tuple(ops)

    def resolve_destination(self, rec: MediaFileRecord, target_dir: Path) -> PlannedOperation:
        """
        Finds a free name in target_dir, or discovers that the same content
        already lives there.

        There is no upper bound on the suffix: the search ends only on a free
        name or a content match.
        """
        for name in candidate_names(rec.path.name):
            candidate = target_dir / name

            claimed_by = self.claimed.get(candidate)
            if claimed_by is not None:
                # Only reachable when records arrive without is_duplicate set
                if claimed_by == rec.fingerprint:
                    return DeleteOperation(rec.path, config.DUPLICATE_REASON.format(path=candidate))
                continue

            if not candidate.exists():
                self.claimed[candidate] = rec.fingerprint
                if name != rec.path.name:
                    logging.debug(f"Name conflict for {rec.path}; using {name}")
                return MoveOperation(rec.path, candidate, target_dir)

            if not candidate.is_file():
                continue

            if self._fingerprint(candidate) == rec.fingerprint:
                return DeleteOperation(rec.path, config.DUPLICATE_REASON.format(path=candidate))

    def _fingerprint(self, path: Path) -> Fingerprint:
        try:
            size = path.stat().st_size
        except OSError as e:
            raise FileHashError(f"Cannot stat {path}: {e}") from e
        return self.hasher.fingerprint(path, size)
