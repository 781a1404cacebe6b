#!/usr/bin/env python3
"""
Generate synthetic GFF3 test data for gffstream.

The generated files contain gene -> mRNA -> exon/CDS hierarchies with
multi-location CDS features, Derives_from polypeptides, optional '###'
marks and an optional embedded FASTA section, so they exercise every part
of the parser.
"""

import logging
import random

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord


def generate_random_sequence(length, gc_content=0.5):
    """Generate a random DNA sequence with specified GC content."""
    bases = []
    for _ in range(length):
        if random.random() < gc_content:
            bases.append(random.choice(['G', 'C']))
        else:
            bases.append(random.choice(['A', 'T']))
    return ''.join(bases)


def generate_gff3(output_file, sequence_length=10000, num_genes=5, num_exons_per_gene=3,
                  seq_id='ctg1', sync_marks=False, include_fasta=False):
    """
    Generate a synthetic GFF3 file with gene features.

    Returns:
        Dictionary with the number of genes, feature lines and (when
        include_fasta is set) the reference sequence written
    """
    logging.info(f"Generating GFF3 file with {num_genes} genes")

    gene_length = sequence_length // (num_genes * 2)  # leave space between genes
    line_count = 0
    reference_seq = None

    with open(output_file, 'w') as f:
        f.write("##gff-version 3\n")
        f.write(f"##sequence-region {seq_id} 1 {sequence_length}\n")

        for i in range(1, num_genes + 1):
            gene_start = i * (sequence_length // (num_genes + 1))
            gene_start = max(1, gene_start - gene_length // 2)
            gene_end = min(sequence_length, gene_start + gene_length)
            strand = '+' if random.random() > 0.3 else '-'

            gene_id = f"gene{i}"
            mrna_id = f"mRNA{i}"
            cds_id = f"cds{i}"
            rows = [
                ('gene', gene_start, gene_end, '.', f"ID={gene_id};Name=gene_{i}"),
                ('mRNA', gene_start, gene_end, '.', f"ID={mrna_id};Parent={gene_id}"),
            ]

            exon_length = (gene_end - gene_start) // num_exons_per_gene
            for j in range(1, num_exons_per_gene + 1):
                exon_start = gene_start + (j - 1) * exon_length
                exon_end = exon_start + exon_length - 10  # small gaps between exons
                rows.append(('exon', exon_start, exon_end, '.', f"ID=exon{i}.{j};Parent={mrna_id}"))
                # one CDS feature with a location per exon
                rows.append(('CDS', exon_start, exon_end, '0', f"ID={cds_id};Parent={mrna_id}"))

            rows.append(('polypeptide', gene_start, gene_end, '.', f"ID=protein{i};Derives_from={mrna_id}"))

            for ftype, start, end, phase, attributes in rows:
                f.write(f"{seq_id}\tgffstream\t{ftype}\t{start}\t{end}\t.\t{strand}\t{phase}\t{attributes}\n")
            line_count += len(rows)

            if sync_marks:
                f.write("###\n")

        if include_fasta:
            reference_seq = generate_random_sequence(sequence_length)
            record = SeqRecord(
                Seq(reference_seq),
                id=seq_id,
                name=seq_id,
                description=f"Synthetic sequence of length {sequence_length}",
            )
            f.write("##FASTA\n")
            SeqIO.write(record, f, "fasta")

    logging.info(f"Generated GFF3 file: {output_file}")
    logging.info(f"  Genes: {num_genes}")
    logging.info(f"  Exons per gene: {num_exons_per_gene}")

    return {
        'genes': num_genes,
        'feature_lines': line_count,
        'sequence': reference_seq,
    }
