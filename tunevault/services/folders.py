"""Folder hierarchy materialization."""
import logging
from pathlib import Path
from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tunevault.models.folder import Folder
from tunevault.utils.paths import relative_to_root

logger = logging.getLogger(__name__)


class FolderResolver:
    """Maps a file's directory to a Folder id, creating the chain lazily.

    The directory -> id cache lives on the instance. Each import run and
    each watcher session creates its own resolver so their caches never
    mix.
    """

    def __init__(self):
        self.cache: Dict[str, int] = {}

    def resolve(
        self,
        db: Session,
        file_path,
        root_path,
        media_type: str
    ) -> Optional[int]:
        """Folder id of the file's directory, or None at the root level.

        A cached id is checked against the database first; another process
        may have purged and rebuilt the folder rows since it was cached.
        """
        directory = str(Path(file_path).parent)
        cached_id = self.cache.get(directory)
        if cached_id is not None:
            folder = db.get(Folder, cached_id)
            if folder is not None and folder.path == directory:
                return cached_id
            logger.debug(f"Dropping stale folder cache for {directory}")
            self.cache.clear()

        folder_id = self._get_or_create_chain(db, Path(directory), Path(root_path), media_type)
        if folder_id is not None:
            self.cache[directory] = folder_id
        return folder_id

    def _get_or_create_chain(
        self,
        db: Session,
        directory: Path,
        root: Path,
        media_type: str
    ) -> Optional[int]:
        relative = relative_to_root(directory, root)
        if relative is None or not relative.parts:
            return None

        parent_id = None
        current = root
        created = False

        for part in relative.parts:
            current = current / part
            folder = db.query(Folder).filter(Folder.path == str(current)).first()
            if folder is None:
                folder = self._insert(db, str(current), part, parent_id, media_type)
                created = True
            parent_id = folder.id

        if created:
            db.commit()
        return parent_id

    def _insert(
        self,
        db: Session,
        path: str,
        name: str,
        parent_id: Optional[int],
        media_type: str
    ) -> Folder:
        """Insert one folder; a concurrent insert of the same path wins."""
        try:
            with db.begin_nested():
                folder = Folder(path=path, name=name, parent_id=parent_id, media_type=media_type)
                db.add(folder)
                db.flush()
            logger.debug(f"Created folder {path}")
            return folder
        except IntegrityError:
            logger.debug(f"Folder {path} created concurrently, reusing it")
            return db.query(Folder).filter(Folder.path == path).one()
