import hashlib
import os

import pytest

from media_organizer import config
from media_organizer.exceptions import FileHashError, ScanError
from media_organizer.models import Fingerprint
from media_organizer.scanning.filesystem import DiskScanner, is_in_organized_path, is_media_file
from media_organizer.scanning.hasher import FileHasher

from conftest import make_file


def test_fingerprint_is_size_and_md5(tmp_path):
    p = make_file(tmp_path / "sample.bin", b"hello world" * 10)

    fp = FileHasher().fingerprint(p, 110)
    assert fp == Fingerprint(110, hashlib.md5(b"hello world" * 10).hexdigest())
    assert str(fp) == f"110-{fp.digest}"
    assert FileHasher().fingerprint_bytes(b"hello world" * 10) == fp


def test_fingerprint_missing_file(tmp_path):
    with pytest.raises(FileHashError):
        FileHasher().fingerprint(tmp_path / "gone.jpg", 1)


def test_identical_content_identical_fingerprint(tmp_path):
    a = make_file(tmp_path / "a.jpg", b"same")
    b = make_file(tmp_path / "sub" / "b.jpg", b"same")
    c = make_file(tmp_path / "c.jpg", b"diff")
    hasher = FileHasher()
    assert hasher.fingerprint(a) == hasher.fingerprint(b)
    assert hasher.fingerprint(a) != hasher.fingerprint(c)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("photo.jpg", True),
        ("photo.JPG", True),
        ("scan.TiF", True),
        ("shot.cr3", True),
        ("shot.RAF", True),
        ("clip.webm", True),
        ("clip.MOV", True),
        ("notes.txt", False),
        ("sidecar.xmp", False),
        ("README", False),
    ],
)
def test_is_media_file(name, expected, tmp_path):
    assert is_media_file(tmp_path / name) == expected


def test_supported_extension_sets():
    assert len(config.MEDIA_EXTS) == 28
    assert '.nef' in config.RAW_EXTS
    assert '.heic' in config.IMAGE_EXTS
    assert '.mkv' in config.VIDEO_EXTS
    assert not (config.IMAGE_EXTS & config.RAW_EXTS) and not (config.RAW_EXTS & config.VIDEO_EXTS)


@pytest.mark.parametrize(
    "rel,expected",
    [
        ("2023", False),
        ("2023/2023-06-01", True),
        ("2023/2023-06-01/deeper/still", True),
        ("2023/June", False),
        ("holiday/2023-06-01", False),
        ("23/2023-06-01", False),
        ("2023/2023-6-1", False),
    ],
)
def test_is_in_organized_path(root, rel, expected):
    assert is_in_organized_path(root, root / rel) == expected


def test_is_in_organized_path_outside_root(root, tmp_path):
    assert not is_in_organized_path(root, tmp_path / "2023" / "2023-06-01")


def test_scan_collects_media_and_directories(root):
    make_file(root / "b.jpg")
    make_file(root / "A.png")
    make_file(root / "notes.txt")
    make_file(root / "trip" / "clip.mp4")
    make_file(root / "trip" / "day2" / "raw.nef")
    (root / "empty").mkdir()

    result = DiskScanner().scan(root)

    assert result.files == [
        root / "A.png",
        root / "b.jpg",
        root / "trip" / "clip.mp4",
        root / "trip" / "day2" / "raw.nef",
    ]
    assert result.visited_dirs == {root, root / "empty", root / "trip", root / "trip" / "day2"}


def test_scan_skips_organized_subtrees_but_records_them(root):
    make_file(root / "2023" / "2023-06-01" / "sorted.jpg")
    make_file(root / "2023" / "2023-06-01" / "nested" / "deep.jpg")
    make_file(root / "2023" / "loose.jpg")

    result = DiskScanner().scan(root)

    assert result.files == [root / "2023" / "loose.jpg"]
    assert root / "2023" / "2023-06-01" in result.visited_dirs
    assert root / "2023" / "2023-06-01" / "nested" not in result.visited_dirs


def test_scan_does_not_follow_symlinks(root, tmp_path):
    outside = tmp_path / "outside"
    make_file(outside / "elsewhere.jpg")
    os.symlink(outside, root / "link")
    os.symlink(outside / "elsewhere.jpg", root / "alias.jpg")

    result = DiskScanner().scan(root)

    assert result.files == []
    assert result.visited_dirs == {root}


def test_scan_missing_root_raises(tmp_path):
    with pytest.raises(ScanError):
        DiskScanner().scan(tmp_path / "missing")


@pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
def test_scan_unreadable_directory_is_fatal(root):
    locked = root / "locked"
    make_file(locked / "x.jpg")
    locked.chmod(0)
    try:
        with pytest.raises(ScanError):
            DiskScanner().scan(root)
    finally:
        locked.chmod(0o755)
