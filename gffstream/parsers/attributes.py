"""
Escaping and parsing of GFF3 column values and the 9th (attributes) column.
"""

import re

_UNESCAPE_RE = re.compile(r'%([0-9A-Fa-f]{2})')
_ATTRIBUTE_ESCAPE_RE = re.compile(r'[\n;\r\t=%&,\x00-\x1f\x7f-\xff]')
_COLUMN_ESCAPE_RE = re.compile(r'[\n\r\t%\x00-\x1f\x7f-\xff]')
_TRAILING_NEWLINE_RE = re.compile(r'\r?\n$')


def _percent_encode(match):
    return f"%{ord(match.group(0)):02X}"


def unescape(value):
    """Decode every %XX hex sequence in a GFF3 value."""
    return _UNESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), value)


def escape(value):
    """Escape a value for use in the attributes column."""
    return _ATTRIBUTE_ESCAPE_RE.sub(_percent_encode, str(value))


def escape_column(value):
    """Escape a value for use in columns 1-8, where ;=&, are legal."""
    return _COLUMN_ESCAPE_RE.sub(_percent_encode, str(value))


def parse_attributes(attr_string):
    """
    Parse the 9th column of a GFF3 feature line.

    Entries without a value are dropped; multiple values are split on commas,
    trimmed and unescaped.

    Args:
        attr_string: Raw attributes column text

    Returns:
        Dictionary mapping attribute name to a list of values
    """
    if not attr_string or attr_string == '.':
        return {}

    attrs = {}
    for entry in _TRAILING_NEWLINE_RE.sub('', attr_string).split(';'):
        key, _, value = entry.partition('=')
        if not value:
            continue
        key = key.strip()
        values = attrs.setdefault(key, [])
        values.extend(unescape(v.strip()) for v in value.split(','))
    return attrs


def format_attributes(attrs):
    """Format an attributes dictionary into a 9th column string."""
    parts = []
    for tag, values in attrs.items():
        if not values:
            continue
        if isinstance(values, (list, tuple)):
            value_string = ','.join(escape(v) for v in values)
        else:
            value_string = escape(values)
        parts.append(f"{escape(tag)}={value_string}")
    return ';'.join(parts) if parts else '.'
