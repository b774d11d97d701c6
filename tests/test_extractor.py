"""Tests for the mutagen metadata extractor."""
import wave

import pytest

from tunevault.integrations.metadata import MutagenExtractor, _mime_ext, _parse_track_number, _parse_year


def write_wav(path, seconds=1, rate=8000):
    with wave.open(str(path), "wb") as f:
        f.setnchannels(1)
        f.setsampwidth(2)
        f.setframerate(rate)
        f.writeframes(b"\x00\x00" * rate * seconds)
    return path


@pytest.fixture
def mutagen_extractor(tmp_path):
    return MutagenExtractor(tmp_path / "covers")


class TestMutagenExtractor:
    """Untagged files still produce a usable record."""

    def test_untagged_wav(self, mutagen_extractor, tmp_path):
        path = write_wav(tmp_path / "Song Title.wav", seconds=2)

        record = mutagen_extractor.extract(path)

        assert record.title == "Song Title"
        assert record.artist is None
        assert record.album is None
        assert round(record.duration) == 2
        assert record.size == path.stat().st_size
        assert record.cover_path is None
        assert record.mtime.tzinfo is not None

    def test_garbage_returns_none(self, mutagen_extractor, tmp_path):
        path = tmp_path / "noise.mp3"
        path.write_bytes(b"definitely not audio")

        assert mutagen_extractor.extract(path) is None

    def test_missing_file_returns_none(self, mutagen_extractor, tmp_path):
        assert mutagen_extractor.extract(tmp_path / "missing.flac") is None

    def test_lrc_sidecar_with_nul_bytes(self, mutagen_extractor, tmp_path):
        path = write_wav(tmp_path / "song.wav")
        (tmp_path / "song.lrc").write_text("[00:01.00]hello\x00 world", encoding="utf-8")
        (tmp_path / "song.txt").write_text("plain", encoding="utf-8")

        assert mutagen_extractor.extract(path).lyrics == "[00:01.00]hello world"

    def test_txt_sidecar(self, mutagen_extractor, tmp_path):
        path = write_wav(tmp_path / "song.wav")
        (tmp_path / "song.txt").write_text("plain lyrics", encoding="utf-8")

        assert mutagen_extractor.extract(path).lyrics == "plain lyrics"


@pytest.mark.parametrize("value,expected", [("3/12", 3), ("7", 7), ("", None), ("A", None), (None, None)])
def test_parse_track_number(value, expected):
    assert _parse_track_number(value) == expected


@pytest.mark.parametrize("value,expected", [("2019-05-01", "2019"), ("1999", "1999"), ("n/a", None), (None, None)])
def test_parse_year(value, expected):
    assert _parse_year(value) == expected


@pytest.mark.parametrize("mime,expected", [("image/jpeg", "jpg"), ("image/png", "png"), ("", "jpg"), (None, "jpg")])
def test_mime_ext(mime, expected):
    assert _mime_ext(mime) == expected
