"""TuneVault - media library ingestion and reconciliation engine."""

__version__ = "0.1.0"
