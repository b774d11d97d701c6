"""Tests for the missing-hash sweeper."""
from tunevault.models import Track
from tunevault.models.enums import FileStatus, MediaType
from tunevault.services.fingerprint import calculate_fingerprint
from tunevault.services.hash_sweeper import HashSweeper


def add_track(db, path, file_hash=None, status=FileStatus.ACTIVE.value, media_type=MediaType.MUSIC.value):
    track = Track(name="t", path=path, file_hash=file_hash, status=status, media_type=media_type)
    db.add(track)
    db.commit()
    return track


class TestHashSweeper:
    """ACTIVE tracks without a fingerprint get one."""

    def test_fills_missing_hashes(self, db, session_factory, roots, write_audio):
        local = write_audio(roots.music, "A/B/01.mp3", b"content")
        track = add_track(db, "/music/A/B/01.mp3")
        blank = add_track(db, "/music/A/B/02.mp3", file_hash="")
        write_audio(roots.music, "A/B/02.mp3", b"other")

        stats = HashSweeper(session_factory, roots).run()

        db.expire_all()
        assert stats == {"checked": 2, "updated": 2, "missing": 0, "errors": 0}
        assert track.file_hash == calculate_fingerprint(local)
        assert blank.file_hash

    def test_audiobook_urls_resolve(self, db, session_factory, roots, write_audio):
        local = write_audio(roots.audiobook, "Book/01.mp3", b"chapter")
        track = add_track(db, "/audio/Book/01.mp3", media_type=MediaType.AUDIOBOOK.value)

        HashSweeper(session_factory, roots).run()

        db.expire_all()
        assert track.file_hash == calculate_fingerprint(local)

    def test_missing_file_is_counted_and_skipped(self, db, session_factory, roots):
        track = add_track(db, "/music/A/B/gone.mp3")

        stats = HashSweeper(session_factory, roots).run()

        db.expire_all()
        assert stats["missing"] == 1
        assert stats["updated"] == 0
        assert track.file_hash is None

    def test_ignores_trashed_and_hashed_tracks(self, db, session_factory, roots, write_audio):
        write_audio(roots.music, "A/B/01.mp3")
        add_track(db, "/music/A/B/01.mp3", status=FileStatus.TRASHED.value)
        add_track(db, "/music/A/B/01.mp3", file_hash="known")

        stats = HashSweeper(session_factory, roots).run()

        assert stats["checked"] == 0

    def test_second_run_finds_nothing(self, db, session_factory, roots, write_audio):
        write_audio(roots.music, "A/B/01.mp3")
        add_track(db, "/music/A/B/01.mp3")
        sweeper = HashSweeper(session_factory, roots)

        sweeper.run()

        assert sweeper.run()["checked"] == 0

    def test_run_safely_contains_errors(self, roots):
        def broken_factory():
            raise RuntimeError("no database")

        assert HashSweeper(broken_factory, roots).run_safely() == {"error": "no database"}

    def test_start_deferred(self, db, session_factory, roots, write_audio):
        write_audio(roots.music, "A/B/01.mp3")
        track = add_track(db, "/music/A/B/01.mp3")

        timer = HashSweeper(session_factory, roots).start_deferred(0.01)
        timer.join(5)

        db.expire_all()
        assert timer.daemon
        assert track.file_hash
