#!/usr/bin/env python3
"""
gffstream - streaming GFF3 parser and formatter

Main command-line interface for the gffstream tool.
"""

import argparse
import logging
import random
import sys

from gffstream.exceptions import GFF3Error
from gffstream.parsers.gff_parser import DEFAULT_BUFFER_SIZE
from gffstream.parsers.reader import ParseOptions, parse_file
from gffstream.reporting.fasta_export import write_fasta
from gffstream.reporting.formatter import GFFFormatter
from gffstream.reporting.json_report import write_json
from gffstream.tools.generate_test_data import generate_gff3
from gffstream.utils.logging import setup_logging


def add_parse_args(parser):
    """Options shared by every command that reads GFF3."""
    parser.add_argument('gff_file', help='Input GFF3 file (may be gzip-compressed)')
    parser.add_argument('--buffer-size', type=int, default=DEFAULT_BUFFER_SIZE,
                        help=f'Maximum number of top-level features held in memory (default: {DEFAULT_BUFFER_SIZE})')
    parser.add_argument('--disable-derives-from', action='store_true',
                        help='Do not resolve Derives_from references')


def add_debug_args(parser):
    debug_group = parser.add_argument_group('Debug Options')
    debug_group.add_argument('--debug', action='store_true', help='Enable debug output')
    debug_group.add_argument('--verbose', action='store_true', help='Enable verbose output without full debug')
    debug_group.add_argument('--log-file', help='Write log to this file')


def build_parser():
    parser = argparse.ArgumentParser(prog='gffstream', description='Streaming GFF3 parser and formatter')
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    json_parser = subparsers.add_parser('to-json', help='Convert GFF3 to JSON')
    add_parse_args(json_parser)
    json_parser.add_argument('--output', '-o', help='Output file (default: stdout)')
    json_parser.add_argument('--indent', type=int, help='Indent each JSON item by this many spaces')
    add_debug_args(json_parser)

    reformat_parser = subparsers.add_parser('reformat', help='Parse and re-serialize GFF3')
    add_parse_args(reformat_parser)
    reformat_parser.add_argument('--output', '-o', help='Output file (default: stdout)')
    reformat_parser.add_argument('--min-sync-lines', type=int, default=100,
                                 help="Lines between '###' marks (default: 100)")
    reformat_parser.add_argument('--no-version-directive', action='store_true',
                                 help='Do not insert a ##gff-version 3 directive')
    add_debug_args(reformat_parser)

    fasta_parser = subparsers.add_parser('extract-fasta', help='Write the embedded FASTA sequences')
    add_parse_args(fasta_parser)
    fasta_parser.add_argument('output_file', help='Output sequence file')
    fasta_parser.add_argument('--format', default='fasta', help='Biopython output format (default: fasta)')
    add_debug_args(fasta_parser)

    test_data_parser = subparsers.add_parser('generate-test-data', help='Generate a synthetic GFF3 file')
    test_data_parser.add_argument('output_file', help='Output GFF3 file')
    test_data_parser.add_argument('--length', type=int, default=10000, help='Length of reference sequence')
    test_data_parser.add_argument('--genes', type=int, default=5, help='Number of genes')
    test_data_parser.add_argument('--exons', type=int, default=3, help='Number of exons per gene')
    test_data_parser.add_argument('--sync', action='store_true', help="Write a '###' mark after each gene")
    test_data_parser.add_argument('--fasta', action='store_true', help='Embed the reference sequence as FASTA')
    test_data_parser.add_argument('--seed', type=int, help='Random seed for reproducible data generation')
    add_debug_args(test_data_parser)

    return parser


def _parse_options(args, **overrides):
    return ParseOptions(
        buffer_size=args.buffer_size,
        disable_derives_from_references=args.disable_derives_from,
        **overrides,
    )


def _open_output(path):
    return open(path, 'w') if path else sys.stdout


def run_to_json(args):
    items = parse_file(args.gff_file, _parse_options(args, parse_all=True))
    out = _open_output(args.output)
    try:
        count = write_json(items, out, indent=args.indent)
    finally:
        if out is not sys.stdout:
            out.close()
    logging.info(f"Wrote {count} items as JSON")
    return 0


def run_reformat(args):
    items = parse_file(args.gff_file, _parse_options(args, parse_all=True))
    formatter = GFFFormatter(
        min_sync_lines=args.min_sync_lines,
        insert_version_directive=not args.no_version_directive,
    )
    out = _open_output(args.output)
    try:
        formatter.write(items, out)
    finally:
        if out is not sys.stdout:
            out.close()
    return 0


def run_extract_fasta(args):
    options = _parse_options(args, parse_features=False, parse_sequences=True)
    count = write_fasta(parse_file(args.gff_file, options), args.output_file, args.format)
    if not count:
        logging.warning(f"No sequences found in {args.gff_file}")
    return 0


def run_generate_test_data(args):
    if args.seed is not None:
        random.seed(args.seed)
        logging.info(f"Using random seed: {args.seed}")
    generate_gff3(
        args.output_file,
        sequence_length=args.length,
        num_genes=args.genes,
        num_exons_per_gene=args.exons,
        sync_marks=args.sync,
        include_fasta=args.fasta,
    )
    return 0


COMMANDS = {
    'to-json': run_to_json,
    'reformat': run_reformat,
    'extract-fasta': run_extract_fasta,
    'generate-test-data': run_generate_test_data,
}


def main(argv=None):
    """Main function of the gffstream command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(debug=args.debug, log_file=args.log_file, verbose=args.verbose)

    try:
        return COMMANDS[args.command](args)
    except GFF3Error as e:
        logging.error(f"Invalid GFF3 in {getattr(args, 'gff_file', args.command)}: {e}")
        return 1
    except OSError as e:
        logging.error(f"I/O error: {e}")
        if args.debug:
            import traceback
            logging.error(traceback.format_exc())
        return 1


if __name__ == "__main__":
    sys.exit(main())
