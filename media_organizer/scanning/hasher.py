import hashlib
from pathlib import Path
from typing import Optional

from .. import config
from ..exceptions import FileHashError
from ..models import Fingerprint


class FileHasher:
    def __init__(self, algorithm: str = config.HASH_ALGORITHM):
        self.algorithm = algorithm

    def fingerprint(self, path: Path, size: Optional[int] = None) -> Fingerprint:
        """
        Reads the entire file and returns its (size, hash) fingerprint.
        Whole-file read: memory use grows with the largest file.
        """
        try:
            if size is None:
                size = path.stat().st_size
            data = path.read_bytes()
        except OSError as e:
            raise FileHashError(f"Cannot read {path}: {e}") from e
        return Fingerprint(size, self._digest(data))

    def fingerprint_bytes(self, data: bytes) -> Fingerprint:
        """Fingerprint for a buffer that has already been read."""
        return Fingerprint(len(data), self._digest(data))

    def _digest(self, data: bytes) -> str:
        return hashlib.new(self.algorithm, data).hexdigest()
