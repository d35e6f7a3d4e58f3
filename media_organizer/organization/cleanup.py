import os
import shutil
import logging
from pathlib import Path
from typing import Iterable, List, Set

from .. import config


def is_ignorable_file(name: str) -> bool:
    """Marker files (.DS_Store, Thumbs.db, AppleDouble ._*) that don't count as content."""
    return name in config.IGNORABLE_FILENAMES or name.startswith(config.APPLEDOUBLE_PREFIX)


def _depth_order(dirs: Iterable[Path]) -> List[Path]:
    # Deepest first so children are settled before their parents
    return sorted(set(dirs), key=lambda d: (len(d.parts), str(d)), reverse=True)


class DirectoryPruner:
    """
    Best-effort removal of directories left empty after organizing.

    Nothing here raises: permission problems or directories vanishing
    underneath us just mean the directory stays.
    """

    def __init__(self, root: Path):
        self.root = root

    def prune(self, candidates: Iterable[Path]) -> int:
        """Targeted pass over candidates, then a sweep of the whole tree."""
        removed = self.cleanup_directories(candidates)
        removed += self.prune_all()
        logging.info(f"Removed {removed} empty directories.")
        return removed

    def try_remove_if_effectively_empty(self, directory: Path) -> bool:
        """
        Deletes ignorable files (recursively), then removes directory if
        nothing else is left in it. Returns True if it was removed.
        """
        if directory == self.root:
            return False
        try:
            self._strip_ignorable(directory)
            with os.scandir(directory) as it:
                remaining = [e.name for e in it]
            if remaining:
                return False
            shutil.rmtree(directory)
            logging.debug(f"Pruned empty directory {directory}")
            return True
        except OSError as e:
            logging.debug(f"Could not prune {directory}: {e}")
            return False

    def _strip_ignorable(self, directory: Path):
        with os.scandir(directory) as it:
            entries = list(it)
        for e in entries:
            path = Path(e.path)
            if e.is_file(follow_symlinks=False):
                if is_ignorable_file(e.name):
                    try:
                        path.unlink()
                    except OSError as err:
                        logging.debug(f"Could not remove {path}: {err}")
            elif e.is_dir(follow_symlinks=False):
                self.try_remove_if_effectively_empty(path)

    def remove_empty_upwards(self, start: Path) -> int:
        """Prunes start, then its parents, until one survives or root is reached."""
        removed = 0
        current = start
        while current != self.root and self._is_below_root(current):
            if not self.try_remove_if_effectively_empty(current):
                break
            removed += 1
            current = current.parent
        return removed

    def cleanup_directories(self, dirs: Iterable[Path]) -> int:
        removed = 0
        for d in _depth_order(dirs):
            removed += self.remove_empty_upwards(d)
        return removed

    def prune_all(self) -> int:
        """Sweeps every directory under root, deepest first."""
        found: Set[Path] = set()
        stack = [self.root]
        while stack:
            current = stack.pop()
            if current in found:
                continue
            found.add(current)
            try:
                with os.scandir(current) as it:
                    for e in it:
                        if e.is_dir(follow_symlinks=False):
                            stack.append(Path(e.path))
            except OSError as err:
                logging.debug(f"Could not list {current}: {err}")

        removed = 0
        for d in _depth_order(found):
            if d == self.root:
                continue
            if self.try_remove_if_effectively_empty(d):
                removed += 1
        return removed

    def _is_below_root(self, path: Path) -> bool:
        try:
            path.relative_to(self.root)
        except ValueError:
            return False
        return True
