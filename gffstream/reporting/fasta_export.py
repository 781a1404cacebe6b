"""
Export of the sequences embedded in a GFF3 file through Biopython.
"""

import logging
from typing import Iterable, Iterator

from Bio import SeqIO
from Bio.SeqRecord import SeqRecord

from gffstream.models.records import Item, Sequence


def sequences_to_records(items: Iterable[Item]) -> Iterator[SeqRecord]:
    """Convert the Sequence items of a parse into SeqRecords, skipping everything else."""
    for item in items:
        if isinstance(item, Sequence):
            yield item.to_seqrecord()


def write_fasta(items: Iterable[Item], output, output_format='fasta') -> int:
    """
    Write the embedded sequences to a file path or open handle.

    Args:
        items: Parsed items; only Sequence items are written
        output: Output file path or text handle
        output_format: Any Bio.SeqIO output format

    Returns:
        Number of sequences written
    """
    count = SeqIO.write(sequences_to_records(items), output, output_format)
    logging.info(f"Wrote {count} sequences in {output_format} format")
    return count
