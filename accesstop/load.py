#!/usr/bin/env python
# coding: utf-8

import re

from . import _common

_restr_token = re.compile(r"""
    (?P<comment>\#[^\n]*)
    |'(?P<single>(?:[^'\\]|\\.)*)'
    |"(?P<double>(?:[^"\\]|\\.)*)"
    |(?P<end>[;{}])
    |(?P<word>[^\s;{}'"]+)
""", re.VERBOSE | re.DOTALL)
_restr_escape = re.compile(r"\\(.)", re.DOTALL)

_DIRECTIVE = "log_format"


def _iter_tokens(text):
    # yields (token, quoted)
    for mo in _restr_token.finditer(text):
        if mo.group("comment") is not None:
            continue
        elif mo.group("single") is not None:
            yield _restr_escape.sub(r"\1", mo.group("single")), True
        elif mo.group("double") is not None:
            yield _restr_escape.sub(r"\1", mo.group("double")), True
        elif mo.group("end") is not None:
            yield mo.group("end"), False
        else:
            yield mo.group("word"), False


def parse_formats(text):
    """Get log_format definitions in nginx configuration text.

    Args:
        text (str): nginx configuration.

    Returns:
        dict: format name to log format template.
    """
    formats = {}
    tokens = iter(_iter_tokens(text))
    for token, quoted in tokens:
        if quoted or token != _DIRECTIVE:
            continue

        args = []
        for arg, arg_quoted in tokens:
            if not arg_quoted and arg in (";", "{", "}"):
                if arg != ";":
                    msg = "unexpected {0!r} in log_format".format(arg)
                    raise _common.FormatError(msg)
                break
            args.append(arg)
        else:
            raise _common.FormatError("log_format is not terminated with ';'")

        if len(args) > 0 and args[0] in formats:
            msg = "duplicated log_format {0!r}".format(args[0])
            raise _common.FormatError(msg)
        if len(args) > 1 and args[1].startswith("escape="):
            del args[1]
        if len(args) < 2:
            raise _common.FormatError("log_format needs a name and a format")
        formats[args[0]] = "".join(args[1:])

    return formats


def load_formats(fp, encoding="utf-8"):
    """Load log_format definitions from an nginx configuration file.
    Included files are not followed.

    Args:
        fp (str): file path of nginx configuration.

    Returns:
        dict: format name to log format template.
    """
    with open(fp, "r", encoding=encoding) as f:
        return parse_formats(f.read())
