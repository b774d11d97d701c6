"""Utility functions."""
from tunevault.utils.paths import LibraryRoots, relative_to_root
from tunevault.utils.episodes import extract_episode_number

__all__ = [
    "LibraryRoots",
    "relative_to_root",
    "extract_episode_number",
]
