"""Folder model."""
from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from tunevault.database import Base
from tunevault.models.enums import MediaType


class Folder(Base):
    """Directory below a library root.

    Folders form a forest: a folder's path is its parent's path plus
    one segment. Top-level folders have no parent.
    """

    __tablename__ = "folders"

    id = Column(Integer, primary_key=True, index=True)
    path = Column(String(1000), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    parent_id = Column(Integer, ForeignKey("folders.id"), index=True)
    media_type = Column(String(20), nullable=False, default=MediaType.MUSIC.value)

    parent = relationship("Folder", remote_side=[id], backref="children")

    def __repr__(self):
        return f"<Folder {self.path}>"
