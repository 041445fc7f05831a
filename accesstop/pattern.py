# coding: utf-8

import logging
import re

from . import _common
from .template import Literal, VariableRef, resolve

_logger = logging.getLogger(__name__)


class CompiledPattern:
    """Regular expression compiled from a :class:`~template.FormatTemplate`.

    The pattern has one named group for each variable in the template.
    If a variable appears more than once, only the first appearance
    is captured; the others are matched without capturing
    (re does not accept duplicated group names).

    Args:
        regex (re.Pattern): compiled pattern for a whole line.
        group_names (list of str): names of the capturing groups in order.
        template (:class:`~template.FormatTemplate`, optional)
    """

    def __init__(self, regex, group_names, template=None):
        self.regex = regex
        self.group_names = tuple(group_names)
        self.template = template

    def __repr__(self):
        return "CompiledPattern({0!r})".format(self.regex.pattern)

    @property
    def pattern(self):
        return self.regex.pattern

    def match(self, line):
        """Returns:
            re.Match or None
        """
        return self.regex.match(line)


def make_regex(template):
    """Generate regular expression pattern string of a template.

    Literal text is escaped to match as is,
    and variables are replaced with their registry fragments.

    Returns:
        tuple: pattern string and list of group names.
    """
    l_pattern = []
    group_names = []
    for seg in template:
        if isinstance(seg, Literal):
            l_pattern.append(re.escape(seg.text))
        elif isinstance(seg, VariableRef):
            variable = seg.variable()
            if variable.name in group_names:
                _logger.debug("variable %s appears again, "
                              "matched without capturing", variable.name)
                l_pattern.append(variable.get_regex(capture=False))
            else:
                group_names.append(variable.name)
                l_pattern.append(variable.get_regex())
        else:
            raise TypeError("unknown template segment {0!r}".format(seg))
    return '^' + "".join(l_pattern) + '$', group_names


def compile_template(template):
    """Compile a template into one line-matching pattern.

    Args:
        template (:class:`~template.FormatTemplate`)

    Returns:
        :class:`CompiledPattern`
    """
    restr, group_names = make_regex(template)
    try:
        regex = re.compile(restr)
    except re.error as e:
        msg = "failed to compile log format {0!r}: {1}".format(
            template.source, e)
        raise _common.PatternError(msg) from e
    _logger.debug("compiled pattern: %s", restr)
    return CompiledPattern(regex, group_names, template=template)


def format_to_pattern(identifier, formats=None):
    """Resolve a format identifier and compile it.

    Args:
        identifier (str): format name or log format template.
        formats (dict, optional): additional named formats.

    Returns:
        :class:`CompiledPattern`
    """
    return compile_template(resolve(identifier, formats=formats))
