"""Tests for folder hierarchy materialization."""
from tunevault.models import Folder
from tunevault.models.enums import MediaType
from tunevault.services.folders import FolderResolver

MUSIC = MediaType.MUSIC.value


class TestFolderResolver:
    """Directory chains become Folder rows exactly once."""

    def test_creates_chain_with_parent_links(self, db, roots):
        resolver = FolderResolver()
        file_path = roots.music / "Artist1" / "Album1" / "01.mp3"

        folder_id = resolver.resolve(db, file_path, roots.music, MUSIC)

        folders = db.query(Folder).order_by(Folder.id).all()
        assert [f.name for f in folders] == ["Artist1", "Album1"]
        parent, leaf = folders
        assert leaf.id == folder_id
        assert leaf.parent_id == parent.id
        assert parent.parent_id is None
        assert leaf.path == str(roots.music / "Artist1" / "Album1")
        assert leaf.media_type == MUSIC

    def test_sibling_files_share_folder(self, db, roots):
        resolver = FolderResolver()
        album = roots.music / "Artist1" / "Album1"

        first = resolver.resolve(db, album / "01.mp3", roots.music, MUSIC)
        second = resolver.resolve(db, album / "02.mp3", roots.music, MUSIC)

        assert first == second
        assert db.query(Folder).count() == 2

    def test_cache_hit_skips_database(self, db, roots):
        resolver = FolderResolver()
        album = roots.music / "Artist1" / "Album1"
        folder_id = resolver.resolve(db, album / "01.mp3", roots.music, MUSIC)

        assert resolver.cache[str(album)] == folder_id

    def test_new_resolver_reuses_existing_rows(self, db, roots):
        path = roots.music / "Artist1" / "Album1" / "01.mp3"
        first = FolderResolver().resolve(db, path, roots.music, MUSIC)
        second = FolderResolver().resolve(db, path, roots.music, MUSIC)

        assert first == second
        assert db.query(Folder).count() == 2

    def test_nested_directory_extends_existing_chain(self, db, roots):
        resolver = FolderResolver()
        resolver.resolve(db, roots.music / "Artist1" / "a.mp3", roots.music, MUSIC)
        disc_id = resolver.resolve(db, roots.music / "Artist1" / "Disc 1" / "b.mp3", roots.music, MUSIC)

        disc = db.get(Folder, disc_id)
        assert disc.parent.name == "Artist1"
        assert db.query(Folder).count() == 2

    def test_file_at_root_has_no_folder(self, db, roots):
        resolver = FolderResolver()
        assert resolver.resolve(db, roots.music / "loose.mp3", roots.music, MUSIC) is None
        assert db.query(Folder).count() == 0

    def test_file_outside_root_has_no_folder(self, db, roots, tmp_path):
        resolver = FolderResolver()
        assert resolver.resolve(db, tmp_path / "other" / "x.mp3", roots.music, MUSIC) is None

    def test_stale_cache_after_purge_is_rebuilt(self, db, roots, session_factory):
        resolver = FolderResolver()
        album = roots.music / "Artist1" / "Album1"
        resolver.resolve(db, album / "01.mp3", roots.music, MUSIC)

        # Another process purges the folders and rebuilds them in a new order
        other = session_factory()
        other.query(Folder).delete()
        other.commit()
        FolderResolver().resolve(other, roots.music / "Other" / "X" / "01.mp3", roots.music, MUSIC)
        FolderResolver().resolve(other, album / "01.mp3", roots.music, MUSIC)
        other.close()

        fresh = session_factory()
        try:
            folder_id = resolver.resolve(fresh, album / "02.mp3", roots.music, MUSIC)
            assert fresh.get(Folder, folder_id).path == str(album)
            assert fresh.query(Folder).count() == 4
        finally:
            fresh.close()
        assert resolver.cache[str(album)] == folder_id
