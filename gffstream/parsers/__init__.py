"""Parsers for GFF3 lines, attributes and embedded FASTA."""
