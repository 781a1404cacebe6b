"""
Parser for the FASTA section at the end of a GFF3 file.
"""

import re

from gffstream.models.records import Sequence

HEADER_RE = re.compile(r'^\s*>\s*(\S+)\s*(.*)')
WHITESPACE_RE = re.compile(r'\s')
NON_SPACE_RE = re.compile(r'\S')


class FastaParser:
    """Accumulates FASTA lines into Sequence records, one record at a time."""

    def __init__(self, sequence_callback=None):
        """
        Initialize the FASTA parser.

        Args:
            sequence_callback: Called with each completed Sequence, or None to discard them
        """
        self.sequence_callback = sequence_callback
        self.current_id = None
        self.current_description = None
        self._chunks = []

    def add_line(self, line):
        match = HEADER_RE.match(line)
        if match:
            self._flush()
            self.current_id = match.group(1)
            self.current_description = match.group(2).strip() or None
        elif self.current_id is not None and NON_SPACE_RE.search(line):
            # joined on flush, sequences can be chromosome sized
            self._chunks.append(WHITESPACE_RE.sub('', line))

    def _flush(self):
        if self.current_id is not None and self.sequence_callback:
            self.sequence_callback(Sequence(
                id=self.current_id,
                sequence=''.join(self._chunks),
                description=self.current_description,
            ))
        self.current_id = None
        self.current_description = None
        self._chunks = []

    def finish(self):
        """Emit the sequence still being built, if any."""
        self._flush()
