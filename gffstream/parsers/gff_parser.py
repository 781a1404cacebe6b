"""
Incremental parser for GFF3 (General Feature Format version 3) files.

Feature lines are linked into features through their ID, Parent and
Derives_from attributes as they arrive. Features that may still be
referenced by later lines are kept under construction until a '###' mark,
a FASTA section, the end of input, or the buffer size limit says they are
done.
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple

from gffstream.exceptions import GFF3Error, GFF3SyntaxError, ReferentialIntegrityError, TypeMismatchError
from gffstream.models.records import Comment, Directive, Feature, Sequence
from gffstream.parsers.fasta_parser import FastaParser
from gffstream.parsers.lines import LineKind, classify_line, parse_comment, parse_directive, parse_feature

CONTAINER_ATTRIBUTES = {
    'Parent': 'child_features',
    'Derives_from': 'derived_features',
}

DEFAULT_BUFFER_SIZE = 1000


class ParserState(Enum):
    """Lifecycle of a GFFParser."""
    ACCEPTING = "accepting"
    FASTA = "fasta"
    ERROR = "error"
    FINISHED = "finished"


@dataclass
class ParseCallbacks:
    """Receivers for parsed items. A missing callback discards that kind of item."""
    feature_callback: Optional[Callable[[Feature], None]] = None
    directive_callback: Optional[Callable[[Directive], None]] = None
    comment_callback: Optional[Callable[[Comment], None]] = None
    sequence_callback: Optional[Callable[[Sequence], None]] = None


class GFFParser:
    """Line-at-a-time GFF3 parser that resolves feature references."""

    def __init__(self, callbacks: Optional[ParseCallbacks] = None,
                 buffer_size: Optional[int] = DEFAULT_BUFFER_SIZE,
                 disable_derives_from_references: bool = False):
        """
        Initialize the GFF parser.

        Args:
            callbacks: Where parsed items are delivered
            buffer_size: Maximum number of top-level features kept under
                construction, or None for no limit
            disable_derives_from_references: Treat Derives_from as a plain attribute
        """
        self.callbacks = callbacks or ParseCallbacks()
        self.buffer_size = buffer_size
        self.disable_derives_from_references = disable_derives_from_references
        self.state = ParserState.ACCEPTING
        self.line_number = 0
        self.fasta_parser = None

        # features that may still be referenced by something else, oldest first
        self._top_level = deque()
        self._by_id: Dict[str, Feature] = {}
        # ID -> {(relation, target ID)} links already recorded for that ID
        self._completed_references: Dict[str, Set[Tuple[str, str]]] = {}
        # target ID -> {'Parent': [features], 'Derives_from': [features]}
        self._orphans: Dict[str, Dict[str, List[Feature]]] = {}

    @property
    def top_level_count(self) -> int:
        """Number of top-level features currently under construction."""
        return len(self._top_level)

    def add_line(self, line: str) -> None:
        """
        Process one line of input.

        Raises:
            GFF3Error: on a syntax, type or reference error. The parser then
                ignores all further input.
        """
        if self.state in (ParserState.ERROR, ParserState.FINISHED):
            return

        self.line_number += 1

        if self.state is ParserState.FASTA:
            self.fasta_parser.add_line(line)
            return

        try:
            self._process_line(line)
        except GFF3Error:
            self.state = ParserState.ERROR
            raise

    def finish(self) -> None:
        """Emit everything still under construction and end the parse."""
        if self.state in (ParserState.ERROR, ParserState.FINISHED):
            return

        try:
            self._emit_all_under_construction()
        except GFF3Error:
            self.state = ParserState.ERROR
            raise

        if self.fasta_parser:
            self.fasta_parser.finish()
        self.state = ParserState.FINISHED
        logging.debug(f"Finished GFF3 parse after {self.line_number} lines")

    def _process_line(self, line):
        kind = classify_line(line)

        if kind is LineKind.FEATURE:
            self._buffer_line(line)
        elif kind is LineKind.SYNC:
            # all forward references must be resolved by now
            self._emit_all_under_construction()
        elif kind is LineKind.DIRECTIVE:
            directive = parse_directive(line)
            if directive is None:
                return
            if directive.directive == 'FASTA':
                self._start_fasta()
            else:
                self._emit(directive)
        elif kind is LineKind.COMMENT:
            self._emit(parse_comment(line))
        elif kind is LineKind.FASTA_HEADER:
            # implicit beginning of a FASTA section
            self._start_fasta()
            self.fasta_parser.add_line(line)
        elif kind is LineKind.INVALID:
            err_line = line.rstrip('\r\n')
            raise GFF3SyntaxError(
                f"GFF3 parse error. Cannot parse '{err_line}'.",
                line_number=self.line_number,
                line=err_line,
            )

    def _start_fasta(self):
        self._emit_all_under_construction()
        self.state = ParserState.FASTA
        self.fasta_parser = FastaParser(self.callbacks.sequence_callback)
        logging.debug(f"Switching to FASTA section at line {self.line_number}")

    def _emit(self, item):
        if isinstance(item, Feature):
            callback = self.callbacks.feature_callback
        elif isinstance(item, Directive):
            callback = self.callbacks.directive_callback
        elif isinstance(item, Comment):
            callback = self.callbacks.comment_callback
        else:
            callback = None
        if callback:
            callback(item)

    def _enforce_buffer_size_limit(self, additional_item_count=0):
        if self.buffer_size is None:
            return
        while self._top_level and len(self._top_level) + additional_item_count > self.buffer_size:
            item = self._top_level.popleft()
            logging.debug(f"Evicted feature {','.join(item.ids)} at line {self.line_number}")
            self._emit(item)
            self._unbuffer(item)

    def _unbuffer(self, item):
        """Forget an emitted feature and every identified feature below it."""
        pending = [item]
        visited = set()
        while pending:
            feature = pending.pop()
            if id(feature) in visited:
                continue
            visited.add(id(feature))

            feature_ids = feature.ids
            if not feature_ids:
                continue
            for feature_id in feature_ids:
                self._by_id.pop(feature_id, None)
                self._completed_references.pop(feature_id, None)
            for location in feature:
                pending.extend(location.child_features)
                pending.extend(location.derived_features)

    def _emit_all_under_construction(self):
        """Emit all buffered features; called when nothing more can attach to them."""
        count = len(self._top_level)
        for feature in self._top_level:
            self._emit(feature)

        self._top_level = deque()
        self._by_id = {}
        self._completed_references = {}

        if self._orphans:
            raise ReferentialIntegrityError(list(self._orphans), line_number=self.line_number)

        if count:
            logging.debug(f"Flushed {count} top-level features at line {self.line_number}")

    def _buffer_line(self, line):
        feature_line = parse_feature(line, self.line_number).with_refs()

        ids = feature_line.get_attribute('ID')
        parents = feature_line.get_attribute('Parent')
        derives = [] if self.disable_derives_from_references else feature_line.get_attribute('Derives_from')

        if not ids and not parents and not derives:
            # nothing can refer to it or extend it, so it is already complete
            self._emit(Feature([feature_line]))
            return

        feature = None
        for feature_id in ids:
            existing = self._by_id.get(feature_id)
            if existing is None:
                continue
            # another location of the same feature
            if existing[-1].type != feature_line.type:
                raise TypeMismatchError(
                    feature_id,
                    feature_line.type,
                    existing[-1].type,
                    line_number=self.line_number,
                    line=line.rstrip('\r\n'),
                )
            existing.append(feature_line)
            feature = existing
            break

        if feature is None:
            feature = Feature([feature_line])
            if not parents and not derives:
                self._enforce_buffer_size_limit(1)
                self._top_level.append(feature)

        for feature_id in ids:
            if feature_id not in self._by_id:
                self._by_id[feature_id] = feature
                self._resolve_references_to(feature, feature_id)

        self._resolve_references_from(feature, {'Parent': parents, 'Derives_from': derives}, ids)

    def _resolve_references_to(self, feature, feature_id):
        """Attach the orphans that were waiting for feature_id."""
        references = self._orphans.pop(feature_id, None)
        if not references:
            return
        for location in feature:
            location.child_features.extend(references['Parent'])
            location.derived_features.extend(references['Derives_from'])

    def _link_recorded(self, ids, relation, target_id):
        """Record (relation, target_id) for every ID; True if any ID already had it."""
        already = False
        for feature_id in ids:
            links = self._completed_references.setdefault(feature_id, set())
            if (relation, target_id) in links:
                already = True
            else:
                links.add((relation, target_id))
        return already

    def _resolve_references_from(self, feature, references, ids):
        for relation, target_ids in references.items():
            for target_id in target_ids:
                if self._link_recorded(ids, relation, target_id):
                    continue
                other_feature = self._by_id.get(target_id)
                if other_feature is not None:
                    container = CONTAINER_ATTRIBUTES[relation]
                    for location in other_feature:
                        getattr(location, container).append(feature)
                else:
                    orphans = self._orphans.setdefault(target_id, {'Parent': [], 'Derives_from': []})
                    orphans[relation].append(feature)
