"""
Minimal EXIF reader: finds DateTimeOriginal in JPEG (APP1 "Exif") or bare TIFF
data (TIFF-based RAW formats included).

Only the two places a camera normally writes the tag are checked:
  1. IFD0 itself
  2. The EXIF sub-IFD referenced from IFD0 by tag 0x8769

Layout reminders:
  - TIFF header: byte order ("II" / "MM"), magic, u32 offset of IFD0.
    All offsets inside the TIFF block are relative to its first byte.
  - IFD: u16 entry count, then 12-byte entries (tag, format, count, value).
    Values of 4 bytes or less are stored inline in the value field.
"""
import logging
import re
import struct
from datetime import datetime
from typing import Iterator, Optional

from ..exceptions import MetadataExtractionError

JPEG_SOI = b'\xff\xd8'
APP1_MARKER = 0xFFE1
EXIF_SIGNATURE = b'Exif\x00\x00'

TAG_DATETIME_ORIGINAL = 0x9003
TAG_EXIF_IFD_POINTER = 0x8769
FORMAT_ASCII = 2
IFD_ENTRY_SIZE = 12
INLINE_VALUE_MAX = 4

EXIF_DATE_RE = re.compile(r'(\d{4}):(\d{2}):(\d{2}) (\d{2}):(\d{2}):(\d{2})')


def find_tiff_start(data: bytes) -> int:
    """
    Returns the offset of the TIFF block. For JPEG this is just past the
    APP1 Exif signature; anything else is assumed to be TIFF at offset 0.
    """
    if data[:2] != JPEG_SOI:
        return 0

    offset = 2
    while offset < len(data) - 1:
        marker, length = struct.unpack_from('>HH', data, offset)
        if marker == APP1_MARKER and data[offset + 4:offset + 10] == EXIF_SIGNATURE:
            return offset + 10
        # length covers itself but not the marker
        offset += 2 + length

    raise MetadataExtractionError("JPEG has no APP1 Exif segment")


class TiffReader:
    def __init__(self, data: bytes, start: int):
        self.data = data
        self.start = start

        byte_order = data[start:start + 2]
        if byte_order == b'II':
            self.endian = '<'
        elif byte_order == b'MM':
            self.endian = '>'
        else:
            raise MetadataExtractionError(f"Bad TIFF byte order {byte_order!r}")

    def u16(self, pos: int) -> int:
        return struct.unpack_from(self.endian + 'H', self.data, pos)[0]

    def u32(self, pos: int) -> int:
        return struct.unpack_from(self.endian + 'I', self.data, pos)[0]

    def ifd0_position(self) -> int:
        return self.start + self.u32(self.start + 4)

    def entries(self, ifd_pos: int) -> Iterator[int]:
        """Yields the absolute position of every entry in the IFD."""
        count = self.u16(ifd_pos)
        for i in range(count):
            yield ifd_pos + 2 + i * IFD_ENTRY_SIZE

    def ascii_value(self, entry_pos: int) -> Optional[str]:
        fmt = self.u16(entry_pos + 2)
        if fmt != FORMAT_ASCII:
            return None
        count = self.u32(entry_pos + 4)
        if count <= INLINE_VALUE_MAX:
            value_pos = entry_pos + 8
        else:
            value_pos = self.start + self.u32(entry_pos + 8)

        # Count includes the NUL terminator
        length = max(count - 1, 0)
        if value_pos + length > len(self.data):
            raise MetadataExtractionError("ASCII value runs past end of data")
        return self.data[value_pos:value_pos + length].decode('latin-1')

    def find_date(self, ifd_pos: int) -> Optional[datetime]:
        for entry_pos in self.entries(ifd_pos):
            if self.u16(entry_pos) != TAG_DATETIME_ORIGINAL:
                continue
            dt = parse_exif_datetime(self.ascii_value(entry_pos))
            if dt:
                return dt
        return None


def parse_exif_datetime(value: Optional[str]) -> Optional[datetime]:
    """Strict "YYYY:MM:DD HH:MM:SS"; anything else (or an impossible date) is None."""
    if not value:
        return None
    m = EXIF_DATE_RE.fullmatch(value)
    if not m:
        return None
    try:
        return datetime(*(int(g) for g in m.groups()))
    except ValueError:
        return None


def extract_exif_date(data: bytes) -> Optional[datetime]:
    """
    Returns DateTimeOriginal from raw file bytes, or None.
    Malformed or truncated data never raises.
    """
    try:
        reader = TiffReader(data, find_tiff_start(data))
        ifd0 = reader.ifd0_position()

        dt = reader.find_date(ifd0)
        if dt:
            return dt

        for entry_pos in reader.entries(ifd0):
            if reader.u16(entry_pos) != TAG_EXIF_IFD_POINTER:
                continue
            sub_ifd = reader.start + reader.u32(entry_pos + 8)
            dt = reader.find_date(sub_ifd)
            if dt:
                return dt
    except (struct.error, MetadataExtractionError) as e:
        logging.debug(f"No EXIF date: {e}")
    return None
