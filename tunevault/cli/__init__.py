"""TuneVault command line interface."""
