import os
import logging
from pathlib import Path
from typing import List, Set

from .. import config
from ..exceptions import ScanError
from ..models import ScanResult


def is_media_file(path: Path) -> bool:
    return path.suffix.lower() in config.MEDIA_EXTS


def is_in_organized_path(root: Path, path: Path) -> bool:
    """
    True if path is <root>/<YYYY>/<YYYY-MM-DD> or anything below it.
    Deeper segments are not checked.
    """
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        return False
    if len(parts) < 2:
        return False
    year_part, day_part = parts[0], parts[1]
    return bool(config.ORGANIZED_YEAR_RE.match(year_part) and config.ORGANIZED_DAY_RE.match(day_part))


class DiskScanner:
    def scan(self, root: Path) -> ScanResult:
        """
        Collects media files under root in scan order, plus every directory seen.

        Organized subtrees are recorded as visited but not descended into.
        Any directory that cannot be listed aborts the scan with ScanError.
        """
        files: List[Path] = []
        visited: Set[Path] = set()

        stack = [root]
        visited.add(root)
        while stack:
            current = stack.pop()

            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                raise ScanError(f"Cannot read directory {current}: {e}") from e

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            for e in entries:
                path = Path(e.path)
                if e.is_dir(follow_symlinks=False):
                    visited.add(path)
                    if is_in_organized_path(root, path):
                        logging.debug(f"Skipping organized directory {path}")
                        continue
                    dirs.append(path)
                elif e.is_file(follow_symlinks=False) and is_media_file(path):
                    files.append(path)

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

        logging.debug(f"Scanned {len(visited)} directories under {root}, {len(files)} media files")
        return ScanResult(files=files, visited_dirs=visited)
