"""
Tests for backlog scanning and the shared file filters.
"""

import pytest

from printhero.watchfolders.scanner import FileScanner, is_within, matches_pattern


def _touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"%PDF")
    return path


class TestPatternMatching:

    def test_match_is_case_insensitive(self):
        assert matches_pattern("INVOICE.PDF", "*.pdf")
        assert matches_pattern("scan.pdf", "*.PDF")

    def test_partial_download_does_not_match(self):
        assert not matches_pattern("scan.pdf.part", "*.pdf")

    def test_prefix_pattern(self):
        assert matches_pattern("label_001.png", "label_*")
        assert not matches_pattern("invoice.png", "label_*")

    def test_is_within(self, tmp_path):
        assert is_within(tmp_path / "a" / "b.pdf", [tmp_path / "a"])
        assert is_within(tmp_path / "a", [tmp_path / "a"])
        assert not is_within(tmp_path / "ab" / "c.pdf", [tmp_path / "a"])


class TestFileScanner:
    """Backlog enumeration."""

    def test_toplevel_scan_ignores_subfolders(self, hot_folder, make_folder):
        top = _touch(hot_folder / "a.pdf")
        _touch(hot_folder / "sub" / "b.pdf")
        _touch(hot_folder / "notes.txt")

        files = FileScanner().scan(make_folder())

        assert files == [top]

    def test_recursive_scan_includes_nested_files(self, hot_folder, make_folder):
        top = _touch(hot_folder / "a.pdf")
        nested = _touch(hot_folder / "sub" / "deeper" / "b.PDF")

        files = FileScanner().scan(make_folder(include_subfolders=True))

        assert files == sorted([top, nested])

    def test_hidden_files_and_directories_are_skipped(self, hot_folder, make_folder):
        visible = _touch(hot_folder / "a.pdf")
        _touch(hot_folder / ".hidden.pdf")
        _touch(hot_folder / ".cache" / "c.pdf")

        files = FileScanner().scan(make_folder(include_subfolders=True))

        assert files == [visible]

    def test_excluded_directory_names_are_pruned_at_any_depth(self, hot_folder, make_folder):
        keep = _touch(hot_folder / "dept" / "a.pdf")
        _touch(hot_folder / "Printed" / "old.pdf")
        _touch(hot_folder / "dept" / "printed" / "older.pdf")

        files = FileScanner().scan(
            make_folder(include_subfolders=True), exclude_dir_names=["Printed"]
        )

        assert files == [keep]

    def test_excluded_directory_paths_are_pruned(self, hot_folder, make_folder):
        keep = _touch(hot_folder / "a.pdf")
        done = hot_folder / "done"
        _touch(done / "b.pdf")

        files = FileScanner().scan(make_folder(include_subfolders=True), exclude_dirs=[done])

        assert files == [keep]

    def test_missing_root_raises(self, tmp_path, make_folder):
        folder = make_folder(folder_path=str(tmp_path / "gone"))

        with pytest.raises(OSError):
            FileScanner().scan(folder)

        with pytest.raises(OSError):
            FileScanner().scan(folder.model_copy(update={"include_subfolders": True}))

    def test_excluded_location_checks_relative_parts(self, hot_folder):
        scanner = FileScanner()

        assert scanner.is_excluded_location(
            hot_folder / "Printed" / "a.pdf", hot_folder, exclude_dir_names=["Printed"]
        )
        assert scanner.is_excluded_location(hot_folder / ".tmp" / "a.pdf", hot_folder)
        assert not scanner.is_excluded_location(
            hot_folder / "a.pdf", hot_folder, exclude_dir_names=["Printed"]
        )
