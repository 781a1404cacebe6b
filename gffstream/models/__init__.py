"""Data models for GFF3 items."""
