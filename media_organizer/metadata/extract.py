import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from .exif import extract_exif_date


class DateResolver:
    """
    Determines a capture date for a file.

    Strategies:
      - EXIF DateTimeOriginal via the built-in parser (JPEG and TIFF-based RAW).
      - Filesystem creation time where the platform records it.
      - Filesystem modification time.
    """

    def resolve(self,
                path: Path,
                data: Optional[bytes] = None,
                stat_result: Optional[os.stat_result] = None) -> Tuple[datetime, str]:
        """
        Returns (capture_datetime, source). Always succeeds for an existing file.

        Args:
            data: File contents if the caller already read them.
            stat_result: Stat of the file if the caller already has it.
        """
        if data is None:
            data = path.read_bytes()

        dt = extract_exif_date(data)
        if dt:
            return dt, 'exif'

        if stat_result is None:
            stat_result = path.stat()
        dt, source = self._filesystem_datetime(stat_result)
        logging.debug(f"No EXIF date for {path}; using {source}")
        return dt, source

    def _filesystem_datetime(self, stat_result) -> Tuple[datetime, str]:
        birthtime = self._birthtime(stat_result)
        if birthtime:
            return datetime.fromtimestamp(birthtime), 'birthtime'
        return datetime.fromtimestamp(stat_result.st_mtime), 'mtime'

    @staticmethod
    def _birthtime(stat_result) -> Optional[float]:
        # st_birthtime exists on macOS/BSD and Windows; Linux has no equivalent here
        return getattr(stat_result, 'st_birthtime', None)
