# coding: utf-8

"""accesstop.extract generates records from access log lines.

A record is a dict of the requested fields.
Most fields are the matched strings of the same name,
and the following derived fields are computed from other variables.

* status_type (int): class of $status, e.g., 4 for 404
* bytes_sent (int): $body_bytes_sent
* request_path (str): $request_uri, or $request if not available

Log lines are not trusted: unparsable numbers become 0,
and missing variables become empty strings.
"""

import logging
import re

from . import _common
from .variable import Kind, lookup

_logger = logging.getLogger(__name__)

_restr_unsigned = re.compile(r'\+?[0-9]+')

UINT16_MAX = 2 ** 16 - 1
UINT32_MAX = 2 ** 32 - 1


def parse_unsigned(string, maximum=UINT32_MAX, default=0):
    """Parse an unsigned integer, or return default
    if the string is missing, not a number, or out of range.
    """
    if string is None or not _restr_unsigned.fullmatch(string):
        return default
    value = int(string)
    if value > maximum:
        return default
    return value


def status_type(status):
    """Class of HTTP status code (1-5), or 0 if unparsable."""
    return parse_unsigned(status, maximum=UINT16_MAX) // 100


def bytes_sent(body_bytes_sent):
    return parse_unsigned(body_bytes_sent, maximum=UINT32_MAX)


def _capture(mo, name):
    if name in mo.re.groupindex:
        return mo.group(name)
    return None


def _pick_status_type(mo):
    return status_type(_capture(mo, _common.SOURCE_STATUS))


def _pick_bytes_sent(mo):
    return bytes_sent(_capture(mo, _common.SOURCE_BODY_BYTES_SENT))


def _pick_request_path(mo):
    uri = _capture(mo, _common.SOURCE_REQUEST_URI)
    if uri is not None:
        return uri
    request = _capture(mo, _common.SOURCE_REQUEST)
    if request is not None:
        return request
    return ""


# derived field name -> (kind, function to pick the value from re.Match)
DERIVED = {
    _common.KEY_STATUS_TYPE: (Kind.INTEGER, _pick_status_type),
    _common.KEY_BYTES_SENT: (Kind.INTEGER, _pick_bytes_sent),
    _common.KEY_REQUEST_PATH: (Kind.STRING, _pick_request_path),
}


def field_kind(name):
    """Returns:
        :class:`~variable.Kind`: kind of the values of the field.
    """
    if name in DERIVED:
        return DERIVED[name][0]
    return lookup(name).kind


def pick_field(mo, name):
    """Get the value of a field from a match of the compiled pattern."""
    if name in DERIVED:
        return DERIVED[name][1](mo)
    value = _capture(mo, name)
    if value is None:
        return ""
    return value


def extract(line, pattern, fields):
    """Extract a record from a log line.

    Args:
        line (str): log line without line feed code.
        pattern (:class:`~pattern.CompiledPattern`)
        fields (list of str): fields to extract.

    Returns:
        dict or None: record, None if the line does not match the pattern.
    """
    mo = pattern.match(line)
    if mo is None:
        return None
    return {name: pick_field(mo, name) for name in fields}


def extract_lines(lines, pattern, fields):
    """Extract records from log lines.
    Mismatched lines are skipped.

    Yields:
        dict: records in order of lines.
    """
    n_mismatch = 0
    for line in lines:
        record = extract(line.rstrip("\r\n"), pattern, fields)
        if record is None:
            n_mismatch += 1
            _logger.debug("line mismatched: %s", line[:50])
        else:
            yield record
    if n_mismatch > 0:
        _logger.info("%d lines skipped (log format mismatch)", n_mismatch)
