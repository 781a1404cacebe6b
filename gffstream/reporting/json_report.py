"""
JSON output for parsed GFF3 items.
"""

import json
import math
from dataclasses import fields
from typing import Iterable, TextIO

from gffstream.exceptions import FormatError
from gffstream.models.records import Comment, Directive, Feature, FeatureLine, Item, Sequence


def _feature_to_list(feature, ancestors):
    if id(feature) in ancestors:
        ids = ','.join(feature.ids) or '(no ID)'
        raise FormatError(f"feature {ids} is its own ancestor, cannot convert to JSON")
    ancestors = ancestors | {id(feature)}

    locations = []
    for location in feature:
        record = {f.name: getattr(location, f.name) for f in fields(FeatureLine)}
        if record['score'] is not None and not math.isfinite(record['score']):
            # NaN and Infinity are not JSON
            record['score'] = None
        record['child_features'] = [_feature_to_list(c, ancestors) for c in getattr(location, 'child_features', [])]
        record['derived_features'] = [_feature_to_list(d, ancestors) for d in getattr(location, 'derived_features', [])]
        locations.append(record)
    return locations


def item_to_dict(item: Item):
    """Convert an item into JSON-serializable data (features become lists of location dicts)."""
    if isinstance(item, Feature):
        return _feature_to_list(item, frozenset())
    if isinstance(item, (Directive, Comment)):
        return {f.name: getattr(item, f.name) for f in fields(item) if getattr(item, f.name) is not None}
    if isinstance(item, Sequence):
        record = {'id': item.id, 'sequence': item.sequence}
        if item.description is not None:
            record['description'] = item.description
        return record
    raise FormatError(f"cannot convert item of type {type(item).__name__} to JSON")


def write_json(items: Iterable[Item], out: TextIO, indent=None) -> int:
    """
    Stream items into a JSON array without holding them all in memory.

    Args:
        items: Parsed items
        out: Open text handle
        indent: Passed to json.dumps for each item

    Returns:
        Number of items written
    """
    count = 0
    out.write('[')
    for item in items:
        if count:
            out.write(',')
        out.write('\n')
        out.write(json.dumps(item_to_dict(item), indent=indent))
        count += 1
    out.write('\n]\n')
    return count
