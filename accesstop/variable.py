# coding: utf-8

"""accesstop.variable is the registry of nginx log format variables.

Each variable is described with a regular expression fragment
matching its value in an access log line, and a :class:`Kind`
telling how the value is typed in the log table.
"""

import enum
import re
from abc import ABC, abstractmethod


class Kind(enum.Enum):
    STRING = "string"
    INTEGER = "integer"
    QUOTED_STRING = "quoted_string"
    IP_ADDRESS = "ip_address"
    TIMESTAMP = "timestamp"
    RAW = "raw"

    @property
    def numeric(self):
        return self is Kind.INTEGER


class Variable(ABC):
    """Base class of log format variables.

    Args:
        name (str): variable name without the leading "$".
            The name is also used as the group name of the
            compiled pattern, and as the column name in the log table.
    """
    kind = Kind.RAW

    def __init__(self, name):
        self._name = name

    def __repr__(self):
        return "{0}({1!r})".format(self.__class__.__name__, self._name)

    def __eq__(self, other):
        return (type(self) is type(other) and self._name == other.name
                and self.pattern == other.pattern)

    def __hash__(self):
        return hash((type(self), self._name))

    @property
    def name(self):
        return self._name

    @property
    @abstractmethod
    def pattern(self):
        """str: Regular expression fragment for the value of this variable."""
        raise NotImplementedError

    def get_regex(self, capture=True):
        """Get regular expression pattern string of this variable.

        Args:
            capture (bool, optional): If false, the fragment is enclosed
                in a non-capturing group instead of a named group.
        """
        if capture:
            return r'(?P<' + self._name + r'>' + self.pattern + r')'
        else:
            return r'(?:' + self.pattern + r')'

    def test(self, string):
        """Test this variable will match the input string or not.
        Only for debugging, it compiles a new pattern for every call.

        Returns:
            re.Match or None
        """
        return re.match(r'^' + self.get_regex() + r'$', string)


class String(Variable):
    """Variable for a token without white spaces and double quotes.

    Args:
        name (str): variable name.
        pattern (str, optional): replaces the default pattern,
            e.g., for lists of values separated with ", ".
    """
    kind = Kind.STRING

    def __init__(self, name, pattern=None):
        super().__init__(name)
        self._pattern = pattern or r'[^\s"]+'

    @property
    def pattern(self):
        return self._pattern


class Integer(Variable):
    """Variable for an integer.
    nginx writes "-" for some missing numeric values,
    and it is accepted to keep such lines.
    """
    kind = Kind.INTEGER
    pattern = r'-?\d+|-'


class QuotedString(Variable):
    """Variable for a free text, usually enclosed in double quotes
    in the log format (e.g., :samp:`"$http_user_agent"`).
    Escaped characters (:samp:`\\"`) are allowed.
    """
    kind = Kind.QUOTED_STRING
    pattern = r'(?:[^"\\]|\\.)*'


class IpAddress(Variable):
    """Variable for an IPv4 or IPv6 address.
    Unix domain socket clients are logged as "unix:".
    """
    kind = Kind.IP_ADDRESS
    pattern = r'[0-9A-Fa-f.:]+|unix:\S*|-'


class Timestamp(Variable):
    """Variable for a timestamp in a fixed format."""
    kind = Kind.TIMESTAMP

    def __init__(self, name, pattern):
        super().__init__(name)
        self._pattern = pattern

    @property
    def pattern(self):
        return self._pattern


class Raw(Variable):
    """Variable not known to the registry.
    It matches anything, as short as possible.
    """
    kind = Kind.RAW
    pattern = r'.*?'


_pattern_time_local = r'\d{2}/[A-Z][a-z]{2}/\d{4}:\d{2}:\d{2}:\d{2} [+-]\d{4}'
_pattern_time_iso8601 = r'\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:[+-]\d{2}:\d{2}|Z)'
_pattern_msec = r'\d+\.\d+'
# e.g., "0.001, 0.002 : 0.003" for multiple upstreams
_pattern_upstream_list = r'[^\s",]+(?:(?:, | : )[^\s",]+)*'

_variables = [
    IpAddress("remote_addr"),
    IpAddress("realip_remote_addr"),
    IpAddress("server_addr"),
    Integer("remote_port"),
    Integer("server_port"),
    String("remote_user"),
    String("binary_remote_addr"),
    Timestamp("time_local", _pattern_time_local),
    Timestamp("time_iso8601", _pattern_time_iso8601),
    Timestamp("msec", _pattern_msec),
    QuotedString("request"),
    String("request_method"),
    String("request_uri"),
    String("uri"),
    String("document_uri"),
    String("args"),
    String("query_string"),
    String("scheme"),
    String("server_protocol"),
    String("host"),
    String("hostname"),
    String("server_name"),
    String("request_id"),
    String("request_time"),
    String("pipe"),
    String("ssl_protocol"),
    String("ssl_cipher"),
    String("gzip_ratio"),
    Integer("status"),
    Integer("body_bytes_sent"),
    Integer("bytes_sent"),
    Integer("request_length"),
    Integer("content_length"),
    Integer("connection"),
    Integer("connection_requests"),
    Integer("pid"),
    String("content_type"),
    QuotedString("http_referer"),
    QuotedString("http_user_agent"),
    QuotedString("http_x_forwarded_for"),
    QuotedString("http_cookie"),
    String("upstream_addr", _pattern_upstream_list),
    String("upstream_status", _pattern_upstream_list),
    String("upstream_response_time", _pattern_upstream_list),
    String("upstream_connect_time", _pattern_upstream_list),
    String("upstream_header_time", _pattern_upstream_list),
    String("upstream_response_length", _pattern_upstream_list),
    String("upstream_cache_status"),
]

REGISTRY = {v.name: v for v in _variables}

# variable families with an arbitrary suffix, e.g., $http_x_real_ip
PREFIX_FAMILIES = ("http_", "sent_http_", "upstream_http_",
                   "cookie_", "arg_")


def _is_family_member(name):
    return any(name.startswith(prefix) and len(name) > len(prefix)
               for prefix in PREFIX_FAMILIES)


def is_known(name):
    """Test the name is a registered variable
    or a member of a registered variable family.
    """
    return name in REGISTRY or _is_family_member(name)


def lookup(name):
    """Get the variable definition of the given name.
    This function always succeeds: names not known to the registry
    are given a :class:`Raw` variable.

    Args:
        name (str): variable name without the leading "$".

    Returns:
        :class:`Variable`
    """
    if name in REGISTRY:
        return REGISTRY[name]
    elif _is_family_member(name):
        return QuotedString(name)
    else:
        return Raw(name)


def known_names():
    """Returns:
        set of str: names of all registered variables.
    """
    return set(REGISTRY)
