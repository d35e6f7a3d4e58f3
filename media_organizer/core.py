import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from tqdm import tqdm

from .exceptions import FileHashError, RootPathError
from .metadata.extract import DateResolver
from .models import (
    ExecutionResult,
    Fingerprint,
    MediaFileRecord,
    Override,
    PlannedOperation,
    PlanningResult,
    ScanProgress,
)
from .organization.cleanup import DirectoryPruner
from .organization.mover import FileMover
from .organization.overrides import ReviewSession
from .organization.rules import DestinationPlanner
from .scanning.filesystem import DiskScanner
from .scanning.hasher import FileHasher


class MediaOrganizerApp:
    def __init__(self, root: Path, show_progress: bool = True):
        root = Path(root)
        if not root.exists():
            raise RootPathError(f'Path "{root}" does not exist or is not accessible.')
        if not root.is_dir():
            raise RootPathError(f'Path "{root}" is not a directory.')

        self.root = root.resolve()
        self.show_progress = show_progress
        self.progress = ScanProgress()

        self.scanner = DiskScanner()
        self.hasher = FileHasher()
        self.dates = DateResolver()

    def plan(self) -> PlanningResult:
        """
        Executes the planning pipeline. Nothing on disk is modified.
        1. Scan (find media, remember directories)
        2. Read (date + fingerprint, mark duplicates)
        3. Plan (destinations and conflict resolution)
        """
        # --- Step 1: Scanning ---
        self.progress.status = f"Scanning directories in {self.root}..."
        logging.info(self.progress.status)
        scan = self.scanner.scan(self.root)
        self.progress.files_found = len(scan.files)

        # --- Step 2: Metadata & Fingerprints ---
        self.progress.status = "Reading file metadata..."
        logging.info(f"Found {len(scan.files)} media files. Reading metadata...")
        records = self.gather_records(scan.files)

        # --- Step 3: Planning ---
        self.progress.status = "Planning operations..."
        logging.info(self.progress.status)
        planner = DestinationPlanner(self.hasher)
        plan = planner.plan(records, self.root)

        self.progress.status = "Plan complete."
        logging.info(f"Plan complete: {len(plan)} operations, {self.progress.duplicates_found} duplicates.")
        return PlanningResult(records=records, plan=plan, visited_dirs=scan.visited_dirs)

    def gather_records(self, files: Sequence[Path]) -> List[MediaFileRecord]:
        """
        Reads each file once for both the date and the fingerprint.
        The first file seen with a fingerprint is canonical; later ones are duplicates.
        """
        seen: Dict[Fingerprint, Path] = {}
        records: List[MediaFileRecord] = []
        self.progress.files_processed = 0
        self.progress.duplicates_found = 0

        for path in tqdm(files, desc="Reading metadata", unit="file", disable=not self.show_progress):
            try:
                stat_result = path.stat()
                data = path.read_bytes()
            except OSError as e:
                raise FileHashError(f"Cannot read {path}: {e}") from e

            capture_dt, date_source = self.dates.resolve(path, data=data, stat_result=stat_result)
            fingerprint = self.hasher.fingerprint_bytes(data)

            canonical = seen.get(fingerprint)
            if canonical is None:
                seen[fingerprint] = path
            else:
                self.progress.duplicates_found += 1
                logging.debug(f"{path} duplicates {canonical}")

            records.append(MediaFileRecord(
                path=path,
                size_bytes=stat_result.st_size,
                capture_datetime=capture_dt,
                date_source=date_source,
                fingerprint=fingerprint,
                is_duplicate=canonical is not None,
                duplicate_of=canonical,
            ))
            self.progress.files_processed += 1

        return records

    def review(self, plan: Sequence[PlannedOperation]) -> ReviewSession:
        return ReviewSession(plan)

    def apply(self,
              plan: Sequence[PlannedOperation],
              overrides: Optional[Mapping[int, Override]] = None) -> ExecutionResult:
        """
        Executes the plan, then prunes directories left empty.
        An execution failure propagates before any pruning happens.
        """
        self.progress.status = "Executing operations..."
        mover = FileMover(show_progress=self.show_progress)
        result = mover.execute(plan, overrides)

        # Re-scan so directories created or emptied by the moves are considered too
        self.progress.status = "Cleaning up empty directories..."
        logging.info(self.progress.status)
        result.touched_dirs |= self.scanner.scan(self.root).visited_dirs
        pruner = DirectoryPruner(self.root)
        pruner.prune(result.touched_dirs)

        self.progress.status = "Organization complete!"
        logging.info(self.progress.status)
        return result
