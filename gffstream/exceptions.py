"""Custom exceptions for GFF3 parsing and formatting."""


class GFF3Error(Exception):
    """Base exception for all GFF3 errors."""

    def __init__(self, message, line_number=None, line=None):
        if line_number is not None:
            message = f"{line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
        self.line = line


class GFF3SyntaxError(GFF3Error):
    """Raised when a line matches no recognized GFF3 shape."""
    pass


class TypeMismatchError(GFF3Error):
    """Raised when two locations of one feature disagree on their type."""

    def __init__(self, feature_id, new_type, existing_type, line_number=None, line=None):
        super().__init__(
            f'multi-line feature "{feature_id}" has inconsistent types: "{new_type}", "{existing_type}"',
            line_number=line_number,
            line=line,
        )
        self.feature_id = feature_id
        self.new_type = new_type
        self.existing_type = existing_type


class ReferentialIntegrityError(GFF3Error):
    """Raised when Parent/Derives_from targets are never defined in scope."""

    def __init__(self, missing_ids, line_number=None):
        self.missing_ids = list(missing_ids)
        super().__init__(
            "some features reference other features that do not exist in the file "
            f"(or in the same '###' scope). {','.join(self.missing_ids)}",
            line_number=line_number,
        )


class FormatError(GFF3Error):
    """Raised when an item cannot be serialized."""
    pass
