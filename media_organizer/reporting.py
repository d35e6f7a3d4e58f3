import csv
import logging
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from .models import (
    DeleteOperation,
    MoveOperation,
    Override,
    OverrideKind,
    PlannedOperation,
    ScanProgress,
)


class PlanReporter:
    """Text and CSV views of a plan, with any overrides applied as tags."""

    def describe(self, op: PlannedOperation, override: Optional[Override] = None) -> str:
        if isinstance(op, DeleteOperation):
            line = f"DELETE: {op.source}"
            if op.reason:
                line += f" Reason: {op.reason}"
        else:
            line = f"MOVE: {op.source} -> {op.target}"

        tag = self.override_tag(override)
        return f"{line} {tag}" if tag else line

    def override_tag(self, override: Optional[Override]) -> str:
        if override is None:
            return ""
        if override.kind is OverrideKind.IGNORE:
            return "[IGNORED]"
        if override.kind is OverrideKind.DELETE:
            return "[DELETE]"
        return f"[RENAME -> {override.new_path.name}]"

    def summary(self, progress: ScanProgress, plan: Sequence[PlannedOperation]) -> List[str]:
        return [
            f"Files found: {progress.files_found}",
            f"Duplicates found: {progress.duplicates_found}",
            f"Total operations: {len(plan)}",
            f"Files organized: {progress.files_found - progress.duplicates_found}",
        ]

    def write_csv(self,
                  plan: Sequence[PlannedOperation],
                  output_csv: Path,
                  overrides: Optional[Mapping[int, Override]] = None):
        """Writes one row per plan entry."""
        overrides = overrides or {}
        headers = [
            "Index",
            "Action",
            "Source Path",
            "Destination Path",
            "Reason",
            "Override",
        ]

        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(headers)
            for index, op in enumerate(plan):
                if isinstance(op, MoveOperation):
                    row = [index, "move", str(op.source), str(op.target), ""]
                else:
                    row = [index, "delete", str(op.source), "", op.reason]
                row.append(self.override_tag(overrides.get(index)))
                writer.writerow(row)

        logging.info(f"Plan report written to {output_csv} ({len(plan)} rows)")
