"""
gffstream - streaming GFF3 parser and formatter.
"""

__version__ = "0.1.0"

from gffstream.exceptions import (
    FormatError,
    GFF3Error,
    GFF3SyntaxError,
    ReferentialIntegrityError,
    TypeMismatchError,
)
from gffstream.models.records import (
    Comment,
    Directive,
    Feature,
    FeatureLine,
    FeatureLineWithRefs,
    GenomeBuildDirective,
    Sequence,
    SequenceRegionDirective,
)
from gffstream.parsers.gff_parser import GFFParser, ParseCallbacks
from gffstream.parsers.reader import ParseOptions, parse_file, parse_lines, parse_stream, parse_string
from gffstream.reporting.formatter import GFFFormatter, format_file, format_items
