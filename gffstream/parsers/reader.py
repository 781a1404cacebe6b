"""
Entry points for parsing GFF3 text from strings, open handles and files.
"""

import gzip
import logging
import re
import time
from collections import deque
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, TextIO

from gffstream.models.records import Item
from gffstream.parsers.gff_parser import DEFAULT_BUFFER_SIZE, GFFParser, ParseCallbacks

LINE_SPLIT_RE = re.compile(r'\r?\n')


@dataclass
class ParseOptions:
    """Which item kinds to deliver, and how features are resolved."""
    parse_features: bool = True
    parse_directives: bool = False
    parse_comments: bool = False
    parse_sequences: bool = True
    parse_all: bool = False
    disable_derives_from_references: bool = False
    buffer_size: Optional[int] = DEFAULT_BUFFER_SIZE
    encoding: str = 'utf-8'

    def __post_init__(self):
        if self.parse_all:
            self.parse_features = True
            self.parse_directives = True
            self.parse_comments = True
            self.parse_sequences = True


def _make_parser(options, receive, buffer_size):
    callbacks = ParseCallbacks(
        feature_callback=receive if options.parse_features else None,
        directive_callback=receive if options.parse_directives else None,
        comment_callback=receive if options.parse_comments else None,
        sequence_callback=receive if options.parse_sequences else None,
    )
    return GFFParser(
        callbacks,
        buffer_size=buffer_size,
        disable_derives_from_references=options.disable_derives_from_references,
    )


def parse_lines(lines: Iterable[str], options: Optional[ParseOptions] = None) -> Iterator[Item]:
    """
    Incrementally parse GFF3 lines, yielding items as soon as they are complete.

    Memory use is bounded by options.buffer_size top-level features. A GFF3
    error is raised out of the generator, which then ends.

    Args:
        lines: Iterable of text lines, in file order, with or without line terminators
        options: Parsing options

    Yields:
        Features, directives, comments and sequences in emission order
    """
    options = options or ParseOptions()
    pending = deque()
    parser = _make_parser(options, pending.append, options.buffer_size)

    for line in lines:
        parser.add_line(line.rstrip('\r\n'))
        while pending:
            yield pending.popleft()

    parser.finish()
    while pending:
        yield pending.popleft()


def parse_stream(handle: TextIO, options: Optional[ParseOptions] = None) -> Iterator[Item]:
    """Incrementally parse GFF3 from an open text handle."""
    return parse_lines(handle, options)


def open_gff3(gff_file, encoding='utf-8'):
    """Open a GFF3 file for reading, transparently handling gzip compression."""
    if str(gff_file).endswith('.gz'):
        return gzip.open(gff_file, 'rt', encoding=encoding)
    return open(gff_file, 'r', encoding=encoding)


def parse_file(gff_file, options: Optional[ParseOptions] = None) -> Iterator[Item]:
    """
    Incrementally parse a GFF3 file (optionally gzip-compressed).

    Args:
        gff_file: Path to the GFF3 file
        options: Parsing options

    Yields:
        Parsed items in emission order
    """
    options = options or ParseOptions()
    start_time = time.time()
    logging.info(f"Parsing GFF3 file: {gff_file}")

    count = 0
    with open_gff3(gff_file, options.encoding) as handle:
        for item in parse_stream(handle, options):
            count += 1
            yield item

    elapsed = time.time() - start_time
    logging.info(f"Finished parsing GFF3 in {elapsed:.2f}s: {count} items")


def parse_string(text: str, options: Optional[ParseOptions] = None) -> List[Item]:
    """
    Synchronously parse a complete GFF3 document.

    The whole document is held in memory, so no buffer limit applies and
    every reference is checked. The first error is raised immediately.

    Args:
        text: GFF3 text
        options: Parsing options; buffer_size is ignored

    Returns:
        List of parsed items in emission order
    """
    if not text:
        return []

    options = options or ParseOptions()
    items = []
    parser = _make_parser(options, items.append, None)

    for line in LINE_SPLIT_RE.split(text):
        parser.add_line(line)
    parser.finish()

    return items
