"""Output writers: GFF3, JSON and FASTA."""
