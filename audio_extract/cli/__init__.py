"""Command line interface (python -m audio_extract.cli)."""
