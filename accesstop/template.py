# coding: utf-8

"""accesstop.template resolves log format identifiers
into :class:`FormatTemplate` objects.

A log format template is written in nginx log_format syntax:
variables are given as :samp:`$name` (or :samp:`${name}`),
and all other characters are literal text.
"""

import logging
import re

from . import _common
from . import preset

_logger = logging.getLogger(__name__)

_restr_name = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')
_VARIABLE_MARK = "$"


class Literal:
    """Literal text segment of a template."""

    def __init__(self, text):
        self.text = text

    def __repr__(self):
        return "Literal({0!r})".format(self.text)

    def __eq__(self, other):
        return isinstance(other, Literal) and self.text == other.text

    @property
    def source(self):
        return self.text


class VariableRef:
    """Variable segment of a template.

    Args:
        name (str): variable name without "$" and braces.
        braced (bool, optional): the variable was written as :samp:`${name}`.
    """

    def __init__(self, name, braced=False):
        self.name = name
        self.braced = braced

    def __repr__(self):
        return "VariableRef({0!r})".format(self.name)

    def __eq__(self, other):
        return (isinstance(other, VariableRef) and self.name == other.name
                and self.braced == other.braced)

    @property
    def source(self):
        if self.braced:
            return _VARIABLE_MARK + "{" + self.name + "}"
        else:
            return _VARIABLE_MARK + self.name

    def variable(self):
        """Returns:
            :class:`~variable.Variable`: registry definition of this variable.
        """
        from .variable import lookup
        return lookup(self.name)


class FormatTemplate:
    """Log format template, an ordered sequence of
    :class:`Literal` and :class:`VariableRef` segments.

    Joining the source of all segments reconstructs the template string.

    Args:
        segments (list): segments in order of appearance.
        name (str, optional): name of the format, if resolved from a name.
    """

    def __init__(self, segments, name=None):
        self.segments = tuple(segments)
        self.name = name

    def __repr__(self):
        return "FormatTemplate({0!r})".format(self.source)

    def __str__(self):
        return self.source

    def __iter__(self):
        return iter(self.segments)

    @property
    def source(self):
        return "".join(seg.source for seg in self.segments)

    def variables(self):
        """Returns:
            list of :class:`VariableRef`: all variable segments,
            including duplicated ones.
        """
        return [seg for seg in self.segments if isinstance(seg, VariableRef)]

    def variable_names(self):
        """Returns:
            list of str: variable names in order of first appearance.
        """
        names = []
        for ref in self.variables():
            if ref.name not in names:
                names.append(ref.name)
        return names


def parse_template(string, name=None):
    """Split a log format template into segments.

    Args:
        string (str): log format template.
        name (str, optional): name given to the template.

    Returns:
        :class:`FormatTemplate`
    """
    segments = []
    buf = []
    pos = 0
    while pos < len(string):
        if string[pos] != _VARIABLE_MARK:
            buf.append(string[pos])
            pos += 1
            continue

        if buf:
            segments.append(Literal("".join(buf)))
            buf = []
        if string.startswith("{", pos + 1):
            end = string.find("}", pos + 2)
            if end < 0:
                msg = "unterminated variable at position {0}: {1}".format(
                    pos, string[pos:])
                raise _common.FormatError(msg)
            varname = string[pos + 2:end]
            if not _restr_name.fullmatch(varname):
                msg = "invalid variable name {0!r}".format(varname)
                raise _common.FormatError(msg)
            segments.append(VariableRef(varname, braced=True))
            pos = end + 1
        else:
            mo = _restr_name.match(string, pos + 1)
            if mo is None:
                msg = "invalid variable at position {0}: {1}".format(
                    pos, string[pos:pos + 10])
                raise _common.FormatError(msg)
            segments.append(VariableRef(mo.group()))
            pos = mo.end()
    if buf:
        segments.append(Literal("".join(buf)))

    return FormatTemplate(segments, name=name)


def resolve(identifier, formats=None):
    """Resolve a log format identifier.

    The identifier is first looked up in the given named formats,
    then in the presets (see :mod:`~accesstop.preset`).
    Otherwise, it is parsed as a log format template.

    Args:
        identifier (str): format name or log format template.
        formats (dict, optional): additional named formats,
            which override presets of the same name.

    Returns:
        :class:`FormatTemplate`
    """
    if not identifier:
        raise _common.FormatError("empty log format")

    if formats and identifier in formats:
        template = parse_template(formats[identifier], name=identifier)
    elif identifier in preset.PRESETS:
        template = parse_template(preset.PRESETS[identifier], name=identifier)
    else:
        template = parse_template(identifier)
        if len(template.variables()) == 0:
            msg = ("unknown log format {0!r}: not a preset name "
                   "and no variables given".format(identifier))
            raise _common.FormatError(msg)

    _logger.debug("log format %s: %s", identifier, template.source)
    return template


def available_variables(identifier, formats=None):
    """Returns:
        list of str: variable names defined in the resolved format.
    """
    return resolve(identifier, formats=formats).variable_names()
