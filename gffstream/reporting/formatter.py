"""
Formatting of parsed GFF3 items back into GFF3 text.
"""

import logging
from typing import Iterable, Iterator, List, TextIO, Union

from gffstream.exceptions import FormatError
from gffstream.models.records import (
    Comment,
    Directive,
    Feature,
    FeatureLine,
    FeatureLineWithRefs,
    Item,
    Sequence,
)
from gffstream.parsers.attributes import escape_column, format_attributes

FASTA_LINE_WIDTH = 80
VERSION_DIRECTIVE = '##gff-version 3\n'
FASTA_DIRECTIVE = '##FASTA\n'
SYNC_MARK = '###\n'


def _format_column(value):
    if value is None:
        return '.'
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        # 0.0 was read from '0'
        value = int(value)
    return escape_column(value)


def _format_single_feature(feature_line, seen_lines):
    attr_string = '.' if feature_line.attributes is None else format_attributes(feature_line.attributes)
    columns = [
        _format_column(feature_line.seq_id),
        _format_column(feature_line.source),
        _format_column(feature_line.type),
        _format_column(feature_line.start),
        _format_column(feature_line.end),
        _format_column(feature_line.score),
        _format_column(feature_line.strand),
        _format_column(feature_line.phase),
        attr_string,
    ]
    formatted = '\t'.join(columns) + '\n'

    # the same line can be reached through more than one parent
    if formatted in seen_lines:
        return ''
    seen_lines.add(formatted)
    return formatted


def _format_feature(feature, seen_lines, seen_features, out):
    if isinstance(feature, list):
        if id(feature) in seen_features:
            return
        seen_features.add(id(feature))
        for location in feature:
            _format_feature(location, seen_lines, seen_features, out)
        return

    out.append(_format_single_feature(feature, seen_lines))
    if isinstance(feature, FeatureLineWithRefs):
        for child in feature.child_features:
            _format_feature(child, seen_lines, seen_features, out)
        for derived in feature.derived_features:
            _format_feature(derived, seen_lines, seen_features, out)


def format_feature(feature: Union[Feature, FeatureLine, List[FeatureLine]]) -> str:
    """
    Format a feature, a feature line, or a list of lines into GFF3 lines.

    Child and derived features are written after each line. A line that is
    byte-identical to one already written in this call is skipped.
    """
    out = []
    _format_feature(feature, set(), set(), out)
    return ''.join(out)


def format_directive(directive: Directive) -> str:
    text = f"##{directive.directive}"
    if directive.value:
        text += f" {directive.value}"
    return text + '\n'


def format_comment(comment: Comment) -> str:
    return f"# {comment.comment}\n"


def format_sequence(sequence: Sequence) -> str:
    """Format a sequence as FASTA, folding the residues into 80-column lines."""
    header = f">{sequence.id}"
    if sequence.description:
        header += f" {sequence.description}"
    residues = sequence.sequence
    lines = [residues[i:i + FASTA_LINE_WIDTH] for i in range(0, len(residues), FASTA_LINE_WIDTH)]
    return header + '\n' + ''.join(line + '\n' for line in lines or [''])


def _format_single_item(item):
    if isinstance(item, (Feature, FeatureLine)):
        return format_feature(item)
    if isinstance(item, Directive):
        return format_directive(item)
    if isinstance(item, Sequence):
        return format_sequence(item)
    if isinstance(item, Comment):
        return format_comment(item)
    raise FormatError(f"cannot format item of type {type(item).__name__}")


def format_item(item_or_items):
    """Format one item into a string, or a list of items into a list of strings."""
    if isinstance(item_or_items, list) and not isinstance(item_or_items, Feature):
        return [_format_single_item(item) for item in item_or_items]
    return _format_single_item(item_or_items)


def format_items(items: Iterable[Item]) -> str:
    """
    Format a complete list of items into GFF3 text.

    Sequences are moved after a ##FASTA directive at the end. No '###'
    marks and no version directive are inserted.
    """
    other = []
    sequences = []
    for item in items:
        if isinstance(item, Sequence):
            sequences.append(item)
        else:
            other.append(item)

    text = ''.join(_format_single_item(item) for item in other)
    if sequences:
        text += FASTA_DIRECTIVE
        text += ''.join(format_sequence(s) for s in sequences)
    return text


class GFFFormatter:
    """Formats a stream of items, inserting '###' marks and a version directive."""

    def __init__(self, min_sync_lines: int = 100, insert_version_directive: bool = True):
        """
        Initialize the formatter.

        Args:
            min_sync_lines: Number of lines after which a '###' mark is written
            insert_version_directive: Write '##gff-version 3' first unless the
                first item already is one
        """
        self.min_sync_lines = min_sync_lines
        self.insert_version_directive = insert_version_directive
        self.lines_since_last_sync_mark = 0
        self.have_emitted_data = False
        self.fasta_mode = False

    def format(self, item: Item) -> str:
        """Format one item, with whatever header or sync mark belongs around it."""
        chunks = []

        if not self.have_emitted_data and self.insert_version_directive:
            if not (isinstance(item, Directive) and item.directive == 'gff-version'):
                chunks.append(VERSION_DIRECTIVE)

        if isinstance(item, Sequence) and not self.fasta_mode:
            chunks.append(FASTA_DIRECTIVE)
            self.fasta_mode = True
            logging.debug("Formatter switched to FASTA mode")

        text = _format_single_item(item)
        chunks.append(text)

        if self.lines_since_last_sync_mark >= self.min_sync_lines:
            # a '###' inside the FASTA section would be read back as sequence
            if not self.fasta_mode:
                chunks.append(SYNC_MARK)
            self.lines_since_last_sync_mark = 0
        else:
            self.lines_since_last_sync_mark += text.count('\n')

        self.have_emitted_data = True
        return ''.join(chunks)

    def transform(self, items: Iterable[Item]) -> Iterator[str]:
        """Lazily format an iterable of items."""
        for item in items:
            yield self.format(item)

    def write(self, items: Iterable[Item], handle: TextIO) -> None:
        """Format items into an open text handle."""
        for chunk in self.transform(items):
            handle.write(chunk)


def format_file(items: Iterable[Item], output_file, min_sync_lines: int = 100,
                insert_version_directive: bool = True) -> None:
    """Write items to a GFF3 file with '###' marks and a version directive."""
    formatter = GFFFormatter(min_sync_lines=min_sync_lines, insert_version_directive=insert_version_directive)
    logging.info(f"Writing GFF3 file: {output_file}")
    with open(output_file, 'w') as out:
        formatter.write(items, out)
