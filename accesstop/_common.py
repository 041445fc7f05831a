# coding: utf-8

# derived field names, shared by extraction and field validation
KEY_STATUS_TYPE = "status_type"
KEY_BYTES_SENT = "bytes_sent"
KEY_REQUEST_PATH = "request_path"
DERIVED_FIELDS = (KEY_STATUS_TYPE, KEY_BYTES_SENT, KEY_REQUEST_PATH)

# captures the derived fields are computed from
SOURCE_STATUS = "status"
SOURCE_BODY_BYTES_SENT = "body_bytes_sent"
SOURCE_REQUEST_URI = "request_uri"
SOURCE_REQUEST = "request"

DEFAULT_FORMAT = "combined"

__all__ = ["KEY_STATUS_TYPE", "KEY_BYTES_SENT", "KEY_REQUEST_PATH",
           "DERIVED_FIELDS", "DEFAULT_FORMAT",
           "AccessTopError", "FormatError", "PatternError", "FieldError",
           "StoreError", "QueryError", "AccessLogParser", "init_parser"]


class AccessTopError(Exception):
    """Base class of all errors raised by accesstop."""
    pass


class FormatError(AccessTopError):
    """FormatError is raised when the given format identifier
    is neither a known preset nor a valid log format template
    (e.g., having an unterminated variable token).
    """
    pass


class PatternError(AccessTopError):
    """PatternError is raised when a resolved template cannot be
    compiled into one regular expression.
    It means a broken variable definition, not a user error.
    """
    pass


class FieldError(AccessTopError):
    """FieldError is raised when a requested field name is neither
    a known log format variable nor a derived field.
    """
    pass


class StoreError(AccessTopError):
    """StoreError is raised when parsed records cannot be
    inserted into the in-memory log table.
    """
    pass


class QueryError(AccessTopError):
    """QueryError is raised when a query fails on the log table.
    The message of the underlying database error is kept as is.
    """
    pass


class AccessLogParser:
    """Access log parser object.

    AccessLogParser binds a resolved log format template,
    the regular expression compiled from it, and the fields to extract.

    Example:
        >>> parser = accesstop.init_parser("combined", ["request_path", "status_type"])
        >>> line = ('192.0.2.1 - - [10/Oct/2020:13:55:36 +0000] '
        ...         '"GET /index.html HTTP/1.1" 404 512 "-" "curl/7.68.0"')
        >>> parser.process_line(line)
        {'request_path': 'GET /index.html HTTP/1.1', 'status_type': 4}

    Args:
        template (:class:`~template.FormatTemplate`): resolved log format.
        fields (list of str): fields to extract from each line.
    """

    def __init__(self, template, fields):
        from .pattern import compile_template
        self.template = template
        self.pattern = compile_template(template)
        self.fields = list(fields)

    def process_line(self, line):
        """Parse a log line.

        Args:
            line (str): A log line. Line feed code will be removed.

        Returns:
            dict or None: extracted record,
            None if the line does not match the log format.
        """
        from .extract import extract
        return extract(line.rstrip("\r\n"), self.pattern, self.fields)

    def process_lines(self, lines):
        """Parse log lines, skipping the mismatched ones.

        Args:
            lines (iterable of str)

        Yields:
            dict: extracted records.
        """
        from .extract import extract_lines
        return extract_lines(lines, self.pattern, self.fields)


def init_parser(log_format=DEFAULT_FORMAT, fields=None, formats=None):
    """Generate :class:`AccessLogParser` object.

    Args:
        log_format (str, optional): preset name or log format template.
            Defaults to "combined".
        fields (list of str, optional): fields to extract.
            If not given, all variables in the format are extracted.
        formats (dict, optional): additional named formats,
            e.g., given by :func:`~load.load_formats`.
    """
    from .template import resolve
    template = resolve(log_format, formats=formats)
    if fields is None:
        fields = template.variable_names()
    return AccessLogParser(template, fields)
