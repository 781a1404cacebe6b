#!/usr/bin/env python3
"""
Tests for the incremental GFF3 parser and its reference resolution.
"""

import unittest
from gffstream.exceptions import GFF3SyntaxError, ReferentialIntegrityError, TypeMismatchError
from gffstream.models.records import Comment, Directive, Feature, Sequence
from gffstream.parsers.gff_parser import GFFParser, ParseCallbacks, ParserState


def gff_line(ftype, attrs, start=1, end=100, seq_id='ctgA', strand='+', phase='.'):
    """Build one tab-delimited feature line."""
    return f"{seq_id}\ttest\t{ftype}\t{start}\t{end}\t.\t{strand}\t{phase}\t{attrs}"


class GFFParserTestCase(unittest.TestCase):
    """Shared setup: a parser whose items are collected in self.items."""

    buffer_size = None
    disable_derives_from = False

    def setUp(self):
        """Set up a parser delivering every item kind to self.items."""
        self.items = []
        self.parser = self.make_parser(self.buffer_size)

    def make_parser(self, buffer_size, disable_derives_from=None):
        if disable_derives_from is None:
            disable_derives_from = self.disable_derives_from
        callbacks = ParseCallbacks(
            feature_callback=self.items.append,
            directive_callback=self.items.append,
            comment_callback=self.items.append,
            sequence_callback=self.items.append,
        )
        return GFFParser(callbacks, buffer_size=buffer_size,
                         disable_derives_from_references=disable_derives_from)

    def feed(self, *lines, finish=True):
        for line in lines:
            self.parser.add_line(line)
        if finish:
            self.parser.finish()

    def features(self):
        return [item for item in self.items if isinstance(item, Feature)]


class BasicResolutionTests(GFFParserTestCase):
    """Test cases for multi-location features and Parent/Derives_from links."""

    def test_unreferenced_line_emitted_immediately(self):
        """Test that a line without ID, Parent or Derives_from is not buffered."""
        self.feed(gff_line('match', 'Name=m1'), finish=False)
        self.assertEqual(len(self.items), 1)
        self.assertIsInstance(self.items[0], Feature)
        self.assertEqual(self.items[0][0].get_attribute('Name'), ['m1'])
        self.assertEqual(self.parser.top_level_count, 0)

    def test_multi_location_merge(self):
        """Test that lines sharing an ID become one feature with several locations."""
        self.feed(
            gff_line('CDS', 'ID=cds00001', start=1201, end=1500, phase='0'),
            gff_line('CDS', 'ID=cds00001', start=3000, end=3902, phase='0'),
        )
        features = self.features()
        self.assertEqual(len(features), 1)
        self.assertEqual([loc.start for loc in features[0]], [1201, 3000])
        self.assertEqual(features[0].ids, ['cds00001'])

    def test_type_mismatch(self):
        """Test that locations with different types are rejected."""
        with self.assertRaises(TypeMismatchError) as ctx:
            self.feed(
                gff_line('CDS', 'ID=x1'),
                gff_line('exon', 'ID=x1', start=200, end=300),
            )
        self.assertEqual(ctx.exception.feature_id, 'x1')
        self.assertEqual(ctx.exception.line_number, 2)
        self.assertEqual(self.parser.state, ParserState.ERROR)

    def test_error_stops_parsing(self):
        """Test that after an error further lines and finish are ignored."""
        with self.assertRaises(TypeMismatchError):
            self.feed(gff_line('CDS', 'ID=x1'), gff_line('exon', 'ID=x1'), finish=False)
        self.parser.add_line(gff_line('gene', 'Name=later'))
        self.parser.add_line('this is not GFF3')
        self.parser.finish()
        self.assertEqual(self.items, [])

    def test_forward_reference(self):
        """Test that a child seen before its parent is attached once the parent arrives."""
        self.feed(
            gff_line('mRNA', 'ID=c1;Parent=p1'),
            gff_line('gene', 'ID=p1'),
        )
        features = self.features()
        self.assertEqual(len(features), 1)
        parent = features[0]
        self.assertEqual(parent.ids, ['p1'])
        self.assertEqual(len(parent[0].child_features), 1)
        self.assertEqual(parent[0].child_features[0].ids, ['c1'])

    def test_backward_reference(self):
        """Test the usual parent-first ordering."""
        self.feed(
            gff_line('gene', 'ID=gene1'),
            gff_line('mRNA', 'ID=mRNA1;Parent=gene1'),
            gff_line('exon', 'Parent=mRNA1', start=1, end=50),
            gff_line('exon', 'Parent=mRNA1', start=60, end=100),
        )
        features = self.features()
        self.assertEqual(len(features), 1)
        mrna = features[0][0].child_features[0]
        self.assertEqual([exon[0].start for exon in mrna[0].child_features], [1, 60])

    def test_children_attached_to_every_location(self):
        """Test that a child of a multi-location feature is linked from each location."""
        self.feed(
            gff_line('match', 'ID=m1', start=1, end=10),
            gff_line('match', 'ID=m1', start=20, end=30),
            gff_line('match_part', 'ID=mp1;Parent=m1', start=1, end=10),
        )
        match = self.features()[0]
        self.assertIs(match[0].child_features[0], match[1].child_features[0])

    def test_derives_from(self):
        """Test that Derives_from fills derived_features."""
        self.feed(
            gff_line('mRNA', 'ID=mRNA1'),
            gff_line('polypeptide', 'ID=prot1;Derives_from=mRNA1'),
        )
        features = self.features()
        self.assertEqual(len(features), 1)
        self.assertEqual(features[0][0].derived_features[0].ids, ['prot1'])
        self.assertEqual(features[0][0].child_features, [])

    def test_shared_child(self):
        """Test that one feature can be the child of several parents."""
        self.feed(
            gff_line('mRNA', 'ID=mRNA1'),
            gff_line('mRNA', 'ID=mRNA2'),
            gff_line('exon', 'ID=exon1;Parent=mRNA1,mRNA2'),
        )
        first, second = self.features()
        self.assertIs(first[0].child_features[0], second[0].child_features[0])

    def test_same_child_and_derived(self):
        """Test a feature that is both child and derived feature of one parent."""
        self.feed(
            gff_line('parent', 'ID=Feature1'),
            gff_line('child', 'ID=c1;Parent=Feature1;Derives_from=Feature1'),
        )
        parent = self.features()[0]
        self.assertIs(parent[0].child_features[0], parent[0].derived_features[0])


class CompletedLinkTests(GFFParserTestCase):
    """Test cases for links repeated on several locations of one feature."""

    def test_repeated_parent_after_parent(self):
        """Test that a multi-location child is linked once when its parent came first."""
        self.feed(
            gff_line('mRNA', 'ID=mRNA1'),
            gff_line('CDS', 'ID=cds1;Parent=mRNA1', start=1, end=10),
            gff_line('CDS', 'ID=cds1;Parent=mRNA1', start=20, end=30),
        )
        mrna = self.features()[0]
        self.assertEqual(len(mrna[0].child_features), 1)
        self.assertEqual(len(mrna[0].child_features[0]), 2)

    def test_repeated_parent_before_parent(self):
        """Test that a multi-location child is linked once when its parent came last."""
        self.feed(
            gff_line('CDS', 'ID=cds1;Parent=mRNA1', start=1, end=10),
            gff_line('CDS', 'ID=cds1;Parent=mRNA1', start=20, end=30),
            gff_line('mRNA', 'ID=mRNA1'),
        )
        mrna = self.features()[0]
        self.assertEqual(len(mrna[0].child_features), 1)
        self.assertEqual(len(mrna[0].child_features[0]), 2)

    def test_multiple_ids_form_one_feature(self):
        """Test that a line with several IDs is one feature reachable through each ID."""
        self.feed(
            gff_line('gene', 'ID=a,b'),
            gff_line('mRNA', 'ID=m1;Parent=a'),
            gff_line('mRNA', 'ID=m2;Parent=b'),
        )
        features = self.features()
        self.assertEqual(len(features), 1)
        gene = features[0]
        self.assertEqual(len(gene), 1)
        self.assertEqual(gene.ids, ['a', 'b'])
        self.assertEqual([c.ids for c in gene[0].child_features], [['m1'], ['m2']])

    def test_multiple_ids_extend_existing(self):
        """Test that a multi-ID line becomes a location of the feature owning its first known ID."""
        self.feed(
            gff_line('gene', 'ID=a', start=1, end=10),
            gff_line('gene', 'ID=a,b', start=20, end=30),
            gff_line('mRNA', 'ID=m1;Parent=b'),
        )
        gene = self.features()[0]
        self.assertEqual(len(gene), 2)
        # the first location existed before m1, the second was attached
        self.assertEqual(gene[0].child_features[0].ids, ['m1'])
        self.assertEqual(gene[1].child_features[0].ids, ['m1'])


class ReferentialIntegrityTests(GFFParserTestCase):
    """Test cases for unresolved references and '###' scoping."""

    def test_dangling_reference(self):
        """Test that a Parent that is never defined is an error naming it."""
        with self.assertRaises(ReferentialIntegrityError) as ctx:
            self.feed(gff_line('exon', 'ID=e1;Parent=missing'))
        self.assertEqual(ctx.exception.missing_ids, ['missing'])
        self.assertIn('missing', str(ctx.exception))

    def test_dangling_derives_from(self):
        """Test that an undefined Derives_from target is an error too."""
        with self.assertRaises(ReferentialIntegrityError) as ctx:
            self.feed(gff_line('polypeptide', 'Derives_from=nowhere'))
        self.assertEqual(ctx.exception.missing_ids, ['nowhere'])

    def test_disable_derives_from(self):
        """Test that disabled Derives_from references are neither linked nor checked."""
        parser = self.make_parser(None, disable_derives_from=True)
        parser.add_line(gff_line('mRNA', 'ID=mRNA1'))
        parser.add_line(gff_line('polypeptide', 'ID=prot1;Derives_from=mRNA1'))
        parser.add_line(gff_line('polypeptide', 'Derives_from=nowhere'))
        parser.finish()
        features = self.features()
        self.assertEqual(len(features), 3)
        self.assertTrue(all(f[0].derived_features == [] for f in features))

    def test_sync_mark_flushes(self):
        """Test that '###' emits every buffered feature."""
        self.feed(gff_line('gene', 'ID=g1'), gff_line('mRNA', 'ID=m1;Parent=g1'), '###', finish=False)
        self.assertEqual(len(self.features()), 1)
        self.assertEqual(self.parser.top_level_count, 0)

    def test_reference_across_sync_mark(self):
        """Test that a parent defined before '###' is out of scope after it."""
        with self.assertRaises(ReferentialIntegrityError) as ctx:
            self.feed(gff_line('gene', 'ID=g1'), '###', gff_line('mRNA', 'ID=m1;Parent=g1'))
        self.assertEqual(ctx.exception.missing_ids, ['g1'])
        # the gene was emitted at the '###' before the failure
        self.assertEqual(len(self.features()), 1)

    def test_pending_reference_at_sync_mark(self):
        """Test that a forward reference still pending at '###' fails there."""
        with self.assertRaises(ReferentialIntegrityError) as ctx:
            self.feed(gff_line('mRNA', 'ID=m1;Parent=g1'), '###', gff_line('gene', 'ID=g1'))
        self.assertEqual(ctx.exception.line_number, 2)
        self.assertEqual(self.parser.state, ParserState.ERROR)


class BufferSizeTests(GFFParserTestCase):
    """Test cases for the bound on buffered top-level features."""

    buffer_size = 1

    def test_fifo_eviction(self):
        """Test that with buffer size 1 each new top-level feature evicts the oldest."""
        self.feed(gff_line('gene', 'ID=g1'), gff_line('gene', 'ID=g2'), finish=False)
        self.assertEqual([f.ids for f in self.features()], [['g1']])
        self.feed(gff_line('gene', 'ID=g3'), finish=False)
        self.assertEqual([f.ids for f in self.features()], [['g1'], ['g2']])
        self.assertEqual(self.parser.top_level_count, 1)
        self.parser.finish()
        self.assertEqual([f.ids for f in self.features()], [['g1'], ['g2'], ['g3']])

    def test_eviction_logged(self):
        """Test that evicting a feature writes a debug message."""
        with self.assertLogs(level='DEBUG') as logs:
            self.feed(gff_line('gene', 'ID=g1'), gff_line('gene', 'ID=g2'), finish=False)
        self.assertTrue(any('Evicted feature g1 at line 2' in message for message in logs.output))

    def test_children_do_not_evict(self):
        """Test that only new top-level features count against the buffer."""
        self.feed(
            gff_line('gene', 'ID=g1'),
            gff_line('mRNA', 'ID=m1;Parent=g1'),
            gff_line('exon', 'ID=e1;Parent=m1'),
            finish=False,
        )
        self.assertEqual(self.items, [])
        self.parser.finish()
        gene = self.features()[0]
        self.assertEqual(gene[0].child_features[0][0].child_features[0].ids, ['e1'])

    def test_evicted_subtree_forgotten(self):
        """Test that features below an evicted feature can no longer be referenced."""
        with self.assertRaises(ReferentialIntegrityError) as ctx:
            self.feed(
                gff_line('gene', 'ID=g1'),
                gff_line('mRNA', 'ID=m1;Parent=g1'),
                gff_line('gene', 'ID=g2'),
                gff_line('exon', 'ID=e1;Parent=m1'),
            )
        self.assertEqual(ctx.exception.missing_ids, ['m1'])

    def test_larger_buffer(self):
        """Test that a bound of 2 keeps two features under construction."""
        parser = self.make_parser(2)
        for i in range(1, 6):
            parser.add_line(gff_line('gene', f'ID=g{i}'))
            self.assertLessEqual(parser.top_level_count, 2)
        self.assertEqual([f.ids for f in self.features()], [['g1'], ['g2'], ['g3']])
        parser.finish()
        self.assertEqual(len(self.features()), 5)


class LineKindTests(GFFParserTestCase):
    """Test cases for directives, comments, syntax errors and FASTA hand-off."""

    def test_directives_and_comments(self):
        """Test that directives and comments are emitted as they are read."""
        self.feed('##gff-version 3', '# hello', '', gff_line('gene', 'ID=g1'), finish=False)
        self.assertEqual(self.items, [Directive(directive='gff-version', value='3'), Comment(comment='hello')])

    def test_syntax_error(self):
        """Test that a line with a bad coordinate raises with its line number."""
        with self.assertRaises(GFF3SyntaxError) as ctx:
            self.feed('##gff-version 3', gff_line('gene', 'ID=g1'), gff_line('gene', 'ID=g2', start='one'))
        self.assertEqual(ctx.exception.line_number, 3)

    def test_fasta_directive(self):
        """Test that ##FASTA flushes features and hands the rest to the FASTA parser."""
        self.feed(
            gff_line('gene', 'ID=g1'),
            '##FASTA',
            '>ctgA test contig',
            'ACTG',
            'ACTG',
        )
        self.assertEqual(len(self.features()), 1)
        self.assertIsInstance(self.items[0], Feature)
        self.assertEqual(self.items[1], Sequence(id='ctgA', sequence='ACTGACTG', description='test contig'))
        self.assertEqual(len(self.items), 2)
        self.assertEqual(self.parser.state, ParserState.FINISHED)

    def test_implicit_fasta(self):
        """Test that a bare '>' line starts the FASTA section."""
        self.feed(gff_line('gene', 'ID=g1'), '>ctgA', 'AC', '>ctgB', 'GT')
        self.assertEqual([s.id for s in self.items if isinstance(s, Sequence)], ['ctgA', 'ctgB'])

    def test_fasta_with_dangling_reference(self):
        """Test that the FASTA transition checks references like a '###' does."""
        with self.assertRaises(ReferentialIntegrityError):
            self.feed(gff_line('exon', 'Parent=m1'), '##FASTA', '>ctgA', 'AC')
        self.assertEqual(self.items, [])


if __name__ == '__main__':
    unittest.main()
