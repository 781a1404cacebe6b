"""
Classification and column parsing of single GFF3 lines.
"""

import re
from enum import Enum
from typing import Optional

from gffstream.exceptions import GFF3SyntaxError
from gffstream.models.records import (
    Comment,
    Directive,
    FeatureLine,
    GenomeBuildDirective,
    SequenceRegionDirective,
)
from gffstream.parsers.attributes import parse_attributes, unescape

FEATURE_RE = re.compile(r'^\s*[^#\s>]')
HASH_RE = re.compile(r'^\s*(#+)(.*)')
BLANK_RE = re.compile(r'^\s*$')
FASTA_HEADER_RE = re.compile(r'^\s*>')
DIRECTIVE_RE = re.compile(r'^\s*##\s*(\S+)\s*(.*)')

NUM_COLUMNS = 9


class LineKind(Enum):
    """Kinds of lines found in a GFF3 file."""
    FEATURE = "feature"
    SYNC = "sync"
    DIRECTIVE = "directive"
    COMMENT = "comment"
    BLANK = "blank"
    FASTA_HEADER = "fasta_header"
    INVALID = "invalid"


def classify_line(line: str) -> LineKind:
    """Decide what kind of GFF3 line this is."""
    if FEATURE_RE.match(line):
        return LineKind.FEATURE

    match = HASH_RE.match(line)
    if match:
        hashes = len(match.group(1))
        if hashes >= 3:
            return LineKind.SYNC
        if hashes == 2:
            return LineKind.DIRECTIVE
        return LineKind.COMMENT

    if BLANK_RE.match(line):
        return LineKind.BLANK
    if FASTA_HEADER_RE.match(line):
        return LineKind.FASTA_HEADER
    return LineKind.INVALID


def _null(column):
    return None if column in ('.', '') else column


def _to_number(column, convert, name, line, line_number):
    if column is None:
        return None
    try:
        return convert(column)
    except ValueError:
        raise GFF3SyntaxError(
            f"invalid {name} '{column}' in line '{line}'", line_number=line_number, line=line
        )


def parse_feature(line: str, line_number: Optional[int] = None) -> FeatureLine:
    """
    Parse a GFF3 feature line into a FeatureLine.

    A '.' or empty column becomes None. Only seq_id, source and type are
    unescaped here; attribute values are unescaped by parse_attributes.
    """
    line = line.rstrip('\r\n')
    columns = [_null(c) for c in line.split('\t')[:NUM_COLUMNS]]
    columns.extend([None] * (NUM_COLUMNS - len(columns)))
    seq_id, source, ftype, start, end, score, strand, phase, attributes = columns

    return FeatureLine(
        seq_id=unescape(seq_id) if seq_id is not None else None,
        source=unescape(source) if source is not None else None,
        type=unescape(ftype) if ftype is not None else None,
        start=_to_number(start, int, 'start', line, line_number),
        end=_to_number(end, int, 'end', line, line_number),
        score=_to_number(score, float, 'score', line, line_number),
        strand=strand,
        phase=phase,
        attributes=parse_attributes(attributes) if attributes is not None else None,
    )


def parse_directive(line: str) -> Optional[Directive]:
    """
    Parse a GFF3 directive line.

    Returns None if the line is not a directive. sequence-region and
    genome-build directives get their value split into extra fields.
    """
    match = DIRECTIVE_RE.match(line)
    if not match:
        return None

    name, contents = match.group(1), match.group(2).rstrip('\r\n')
    value = contents if contents else None

    if name == 'sequence-region':
        parts = re.split(r'\s+', contents)[:3]
        parts.extend([None] * (3 - len(parts)))
        seq_id, start, end = parts
        return SequenceRegionDirective(
            directive=name,
            value=value,
            seq_id=seq_id,
            start=re.sub(r'\D', '', start) if start is not None else None,
            end=re.sub(r'\D', '', end) if end is not None else None,
        )
    if name == 'genome-build':
        parts = re.split(r'\s+', contents)[:2]
        return GenomeBuildDirective(
            directive=name,
            value=value,
            source=parts[0],
            build_name=parts[1] if len(parts) > 1 else None,
        )
    return Directive(directive=name, value=value)


def parse_comment(line: str) -> Comment:
    """Parse a '#' comment line, dropping the leading whitespace of its text."""
    match = HASH_RE.match(line)
    contents = match.group(2) if match else line
    return Comment(comment=contents.rstrip('\r\n').lstrip())
