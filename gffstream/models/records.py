"""
Data models for GFF3 items: feature lines, features, directives, comments and sequences.
"""

from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Union

from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord


@dataclass
class FeatureLine:
    """Represents one tab-delimited feature line of a GFF3 file."""
    seq_id: Optional[str] = None
    source: Optional[str] = None
    type: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None
    score: Optional[float] = None
    strand: Optional[str] = None
    phase: Optional[str] = None
    attributes: Optional[Dict[str, List[str]]] = None

    def get_attribute(self, name: str) -> List[str]:
        """Return the values of an attribute, or an empty list."""
        if not self.attributes:
            return []
        return self.attributes.get(name) or []

    def with_refs(self) -> 'FeatureLineWithRefs':
        """Copy this line into a FeatureLineWithRefs with empty reference lists."""
        values = {f.name: getattr(self, f.name) for f in fields(FeatureLine)}
        return FeatureLineWithRefs(**values)


@dataclass
class FeatureLineWithRefs(FeatureLine):
    """
    A feature line linked to the features that reference it.

    The same Feature may be listed under several lines (several Parent or
    Derives_from values), so these lists hold shared references.
    """
    child_features: List['Feature'] = field(default_factory=list, repr=False)
    derived_features: List['Feature'] = field(default_factory=list, repr=False)


class Feature(list):
    """All locations (FeatureLineWithRefs) sharing one or more identifiers."""

    @property
    def type(self) -> Optional[str]:
        return self[-1].type if self else None

    @property
    def ids(self) -> List[str]:
        seen = []
        for location in self:
            for feature_id in location.get_attribute('ID'):
                if feature_id not in seen:
                    seen.append(feature_id)
        return seen

    def __repr__(self):
        return f"Feature({list.__repr__(self)})"


@dataclass
class Directive:
    """A '##name value' directive line."""
    directive: str
    value: Optional[str] = None


@dataclass
class SequenceRegionDirective(Directive):
    """A ##sequence-region directive."""
    seq_id: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None


@dataclass
class GenomeBuildDirective(Directive):
    """A ##genome-build directive."""
    source: Optional[str] = None
    build_name: Optional[str] = None


@dataclass
class Comment:
    """A '# text' comment line."""
    comment: str


@dataclass
class Sequence:
    """A FASTA record from the ##FASTA section of a GFF3 file."""
    id: str
    sequence: str = ''
    description: Optional[str] = None

    def to_seqrecord(self) -> SeqRecord:
        """Convert to a Biopython SeqRecord."""
        return SeqRecord(
            Seq(self.sequence),
            id=self.id,
            name=self.id,
            description=self.description or '',
        )


Item = Union[Feature, Directive, Comment, Sequence]
