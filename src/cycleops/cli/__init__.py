"""Command-line interface for CycleOps."""
