import shutil
import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence

from tqdm import tqdm

from ..exceptions import FileOperationError
from ..models import (
    DeleteOperation,
    ExecutionResult,
    MoveOperation,
    Override,
    OverrideKind,
    PlannedOperation,
)


class FileMover:
    def __init__(self, show_progress: bool = True):
        self.show_progress = show_progress

    def execute(self,
                plan: Sequence[PlannedOperation],
                overrides: Optional[Mapping[int, Override]] = None) -> ExecutionResult:
        """
        Applies the plan in order, with overrides taking precedence.

        Stops at the first failure. Operations already applied stay applied.
        """
        overrides = overrides or {}
        result = ExecutionResult()

        logging.info(f"Applying {len(plan)} operations ({len(overrides)} overridden)...")

        for index, op in enumerate(tqdm(plan, desc="Organizing", disable=not self.show_progress)):
            override = overrides.get(index)
            if override is not None and override.kind is OverrideKind.IGNORE:
                logging.debug(f"Ignored #{index}: {op.source}")
                result.skipped += 1
                continue

            result.touched_dirs.add(op.source.parent)
            try:
                self._apply(op, override, result)
            except OSError as e:
                raise FileOperationError(f"Failed to process {op.source}: {e}", index, op) from e

        logging.info(f"Moved {result.moved}, deleted {result.deleted}, ignored {result.skipped}.")
        return result

    def _apply(self, op: PlannedOperation, override: Optional[Override], result: ExecutionResult):
        if override is not None and override.kind is OverrideKind.RENAME:
            self._move(op.source, override.new_path, override.new_path.parent)
            result.moved += 1
        elif override is not None and override.kind is OverrideKind.DELETE:
            self._delete(op.source)
            result.deleted += 1
        elif isinstance(op, DeleteOperation):
            self._delete(op.source)
            result.deleted += 1
        elif isinstance(op, MoveOperation):
            self._move(op.source, op.target, op.target_dir)
            result.moved += 1

    def _move(self, src: Path, dest: Path, dest_dir: Path):
        # A rename override can point at a name another entry also lands on
        if dest.exists() or dest.is_symlink():
            raise FileExistsError(f"Destination {dest} already exists")
        dest_dir.mkdir(parents=True, exist_ok=True)
        shutil.move(str(src), str(dest))
        logging.debug(f"Moved {src} -> {dest}")

    def _delete(self, src: Path):
        src.unlink()
        logging.debug(f"Deleted {src}")
