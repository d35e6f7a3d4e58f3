import os

import pytest

from media_organizer.organization.cleanup import DirectoryPruner, is_ignorable_file

from conftest import make_file


@pytest.mark.parametrize(
    "name,expected",
    [
        (".DS_Store", True),
        ("Thumbs.db", True),
        (".localized", True),
        ("._IMG_0001.jpg", True),
        ("._", True),
        ("thumbs.db", False),
        ("_IMG.jpg", False),
        ("photo.jpg", False),
    ],
)
def test_is_ignorable_file(name, expected):
    assert is_ignorable_file(name) == expected


def test_marker_only_directory_is_removed(root):
    d = root / "old"
    make_file(d / ".DS_Store")
    make_file(d / "._photo.jpg")
    make_file(d / "Thumbs.db")

    assert DirectoryPruner(root).try_remove_if_effectively_empty(d)
    assert not d.exists()


def test_directory_with_real_content_is_kept(root):
    d = root / "keep"
    make_file(d / ".DS_Store")
    make_file(d / "notes.txt")

    assert not DirectoryPruner(root).try_remove_if_effectively_empty(d)
    assert (d / "notes.txt").exists()
    # Markers are still cleaned out
    assert not (d / ".DS_Store").exists()


def test_nested_empty_directories_are_removed(root):
    make_file(root / "a" / "b" / "c" / ".DS_Store")
    (root / "a" / "b" / "empty").mkdir()

    assert DirectoryPruner(root).try_remove_if_effectively_empty(root / "a")
    assert not (root / "a").exists()


def test_nested_content_keeps_ancestors(root):
    make_file(root / "a" / "b" / "photo.jpg")
    make_file(root / "a" / "junk" / ".DS_Store")

    assert not DirectoryPruner(root).try_remove_if_effectively_empty(root / "a")
    assert (root / "a" / "b" / "photo.jpg").exists()
    assert not (root / "a" / "junk").exists()


def test_symlink_counts_as_content(root, tmp_path):
    d = root / "links"
    d.mkdir()
    os.symlink(tmp_path, d / "pointer")

    assert not DirectoryPruner(root).try_remove_if_effectively_empty(d)
    assert d.exists()


def test_root_is_never_removed(root):
    make_file(root / ".DS_Store")
    pruner = DirectoryPruner(root)

    assert not pruner.try_remove_if_effectively_empty(root)
    assert pruner.remove_empty_upwards(root) == 0
    pruner.prune({root})
    assert root.exists()


def test_missing_directory_is_not_an_error(root):
    assert not DirectoryPruner(root).try_remove_if_effectively_empty(root / "never-existed")


def test_remove_empty_upwards_stops_at_content(root):
    make_file(root / "a" / "keep.jpg")
    (root / "a" / "b" / "c").mkdir(parents=True)

    removed = DirectoryPruner(root).remove_empty_upwards(root / "a" / "b" / "c")

    assert removed == 2
    assert not (root / "a" / "b").exists()
    assert (root / "a").exists()


def test_remove_empty_upwards_ignores_paths_outside_root(root, tmp_path):
    outside = tmp_path / "outside"
    outside.mkdir()
    assert DirectoryPruner(root).remove_empty_upwards(outside) == 0
    assert outside.exists()


def test_cleanup_handles_children_before_parents(root):
    make_file(root / "x" / "y" / ".DS_Store")
    (root / "x" / "z").mkdir()

    removed = DirectoryPruner(root).cleanup_directories([root / "x", root / "x" / "y", root / "x" / "z"])

    assert removed >= 1
    assert not (root / "x").exists()
    assert root.exists()


def test_prune_all_sweeps_whole_tree(root):
    make_file(root / "2023" / "2023-06-01" / "photo.jpg")
    make_file(root / "old" / "deep" / "deeper" / "Thumbs.db")
    (root / "stray").mkdir()

    DirectoryPruner(root).prune_all()

    assert (root / "2023" / "2023-06-01" / "photo.jpg").exists()
    assert not (root / "old").exists()
    assert not (root / "stray").exists()
    assert root.exists()


@pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
def test_permission_errors_are_swallowed(root):
    locked = root / "locked"
    make_file(locked / "inner" / ".DS_Store")
    locked.chmod(0o500)
    try:
        pruner = DirectoryPruner(root)
        assert not pruner.try_remove_if_effectively_empty(locked / "inner")
        pruner.prune({locked, locked / "inner"})
    finally:
        locked.chmod(0o755)
    assert (locked / "inner").exists()
