"""Tests for content fingerprints."""
import hashlib

from tunevault.services.fingerprint import calculate_fingerprint


class TestCalculateFingerprint:
    """Fingerprints depend on size and content edges only."""

    def test_small_file_hashes_size_and_content(self, tmp_path):
        path = tmp_path / "a.mp3"
        path.write_bytes(b"hello")

        expected = hashlib.md5(b"5" + b"hello").hexdigest()
        assert calculate_fingerprint(path) == expected

    def test_same_content_different_path(self, tmp_path):
        first = tmp_path / "one" / "song.mp3"
        second = tmp_path / "two" / "renamed.mp3"
        for path in (first, second):
            path.parent.mkdir()
            path.write_bytes(b"x" * 50000)

        assert calculate_fingerprint(first) == calculate_fingerprint(second)

    def test_middle_bytes_are_ignored_for_large_files(self, tmp_path):
        window = 16
        first = tmp_path / "a.flac"
        second = tmp_path / "b.flac"
        first.write_bytes(b"H" * window + b"middle-one" + b"T" * window)
        second.write_bytes(b"H" * window + b"middle-two" + b"T" * window)

        assert calculate_fingerprint(first, window) == calculate_fingerprint(second, window)

    def test_tail_change_changes_fingerprint(self, tmp_path):
        window = 16
        first = tmp_path / "a.flac"
        second = tmp_path / "b.flac"
        first.write_bytes(b"H" * window + b"middle" + b"T" * window)
        second.write_bytes(b"H" * window + b"middle" + b"X" * window)

        assert calculate_fingerprint(first, window) != calculate_fingerprint(second, window)

    def test_large_file_includes_tail_window(self, tmp_path):
        window = 4
        path = tmp_path / "a.ogg"
        path.write_bytes(b"abcdefghij")

        expected = hashlib.md5(b"10" + b"abcd" + b"ghij").hexdigest()
        assert calculate_fingerprint(path, window) == expected

    def test_size_is_part_of_fingerprint(self, tmp_path):
        first = tmp_path / "a.mp3"
        second = tmp_path / "b.mp3"
        first.write_bytes(b"abc")
        second.write_bytes(b"abc ")

        assert calculate_fingerprint(first) != calculate_fingerprint(second)

    def test_missing_file_returns_empty_string(self, tmp_path):
        assert calculate_fingerprint(tmp_path / "missing.mp3") == ""

    def test_stable_across_calls(self, tmp_path):
        path = tmp_path / "a.mp3"
        path.write_bytes(b"z" * 40000)

        assert calculate_fingerprint(path) == calculate_fingerprint(str(path))
