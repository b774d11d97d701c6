"""External tool integrations."""
from tunevault.integrations.metadata import MetadataExtractor, MutagenExtractor, ScanRecord

__all__ = ["MetadataExtractor", "MutagenExtractor", "ScanRecord"]
