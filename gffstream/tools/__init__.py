"""Synthetic GFF3 test data generation."""
