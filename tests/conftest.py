import os
import struct
from datetime import datetime
from pathlib import Path
from typing import Optional

import pytest

from media_organizer.metadata.extract import DateResolver


def make_file(path: Path, content: bytes = b"dummy content", mtime: Optional[datetime] = None) -> Path:
    """Creates a file (and parents), optionally backdating its mtime."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    if mtime is not None:
        ts = mtime.timestamp()
        os.utime(path, (ts, ts))
    return path


def build_tiff(date_str: str, byte_order: str = "II", sub_ifd: bool = False, fmt: int = 2) -> bytes:
    """
    Smallest TIFF block carrying DateTimeOriginal, either directly in IFD0 or
    in an EXIF sub-IFD that IFD0 points to.
    """
    e = "<" if byte_order == "II" else ">"
    value = date_str.encode("ascii") + b"\x00"
    header = byte_order.encode("ascii") + struct.pack(e + "HI", 42, 8)

    # Each single-entry IFD is 2 + 12 + 4 = 18 bytes; IFD0 starts at 8
    if not sub_ifd:
        ifd0 = (struct.pack(e + "H", 1)
                + struct.pack(e + "HHII", 0x9003, fmt, len(value), 26)
                + struct.pack(e + "I", 0))
        return header + ifd0 + value

    ifd0 = (struct.pack(e + "H", 1)
            + struct.pack(e + "HHII", 0x8769, 4, 1, 26)
            + struct.pack(e + "I", 0))
    exif_ifd = (struct.pack(e + "H", 1)
                + struct.pack(e + "HHII", 0x9003, fmt, len(value), 44)
                + struct.pack(e + "I", 0))
    return header + ifd0 + exif_ifd + value


def build_jpeg(tiff: bytes) -> bytes:
    """SOI, a JFIF APP0 segment, an APP1 Exif segment wrapping tiff, EOI."""
    app0_payload = b"JFIF\x00" + b"\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    app0 = b"\xff\xe0" + struct.pack(">H", len(app0_payload) + 2) + app0_payload
    app1_payload = b"Exif\x00\x00" + tiff
    app1 = b"\xff\xe1" + struct.pack(">H", len(app1_payload) + 2) + app1_payload
    return b"\xff\xd8" + app0 + app1 + b"\xff\xd9"


def make_exif_jpeg(path: Path, date_str: str, extra: bytes = b"") -> Path:
    """A JPEG-shaped file whose EXIF says it was taken at date_str."""
    return make_file(path, build_jpeg(build_tiff(date_str)) + extra)


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """Empty library root."""
    d = tmp_path / "library"
    d.mkdir()
    return d


@pytest.fixture
def no_birthtime(monkeypatch):
    """Forces the filesystem fallback to use mtime on every platform."""
    monkeypatch.setattr(DateResolver, "_birthtime", staticmethod(lambda stat_result: None))
