# coding: utf-8

"""accesstop.processor stores records in an in-memory SQLite table
and runs aggregation queries on it.

The table is named "log", and has one column for each requested field.
Integer fields (e.g., status_type, bytes_sent, status) are stored
in INTEGER columns, so that they can be used with AVG or SUM.
"""

import logging
import sqlite3

from . import _common
from .extract import DERIVED, field_kind
from .variable import is_known

_logger = logging.getLogger(__name__)

TABLE_NAME = "log"

_STATUS_TYPES = (2, 3, 4, 5)


class QuerySpec:
    """A query to run on the log table.

    Args:
        query (str): SQL query.
        fields (list of str): fields the query was generated for.
        title (str, optional): title shown with the results.
    """

    def __init__(self, query, fields, title=None):
        self._query = query
        self._fields = tuple(fields)
        self._title = title

    def __repr__(self):
        return "QuerySpec({0!r})".format(self._query)

    @property
    def query(self):
        return self._query

    @property
    def fields(self):
        return self._fields

    @property
    def title(self):
        return self._title


class QueryResult:
    """Result of a :class:`QuerySpec`.

    Attributes:
        spec (:class:`QuerySpec`)
        columns (list of str): column names.
        rows (list of tuple): result rows.
    """

    def __init__(self, spec, columns, rows):
        self.spec = spec
        self.columns = columns
        self.rows = rows

    def __repr__(self):
        return "QueryResult({0!r}, {1} rows)".format(self.columns, len(self.rows))


def quote(name):
    """Quote a field name as an SQL identifier."""
    return '"{0}"'.format(name.replace('"', '""'))


def avg_query(fields):
    """Average of each field, in one row."""
    selections = ", ".join('AVG({0}) AS "AVG({1})"'.format(quote(f), f)
                           for f in fields)
    query = "SELECT {0} FROM {1}".format(selections, TABLE_NAME)
    return QuerySpec(query, fields, title="Average")


def sum_query(fields):
    """Sum of each field, in one row."""
    selections = ", ".join('SUM({0}) AS "SUM({1})"'.format(quote(f), f)
                           for f in fields)
    query = "SELECT {0} FROM {1}".format(selections, TABLE_NAME)
    return QuerySpec(query, fields, title="Sum")


def print_query(fields):
    """Distinct combinations of the field values."""
    selections = ", ".join(quote(f) for f in fields)
    query = "SELECT {0} FROM {1} GROUP BY {0}".format(selections, TABLE_NAME)
    return QuerySpec(query, fields, title="Print")


def top_queries(fields, limit):
    """Most frequent values of each field, with their counts.

    Returns:
        list of :class:`QuerySpec`: one query for each field.
    """
    queries = []
    for f in fields:
        query = ("SELECT {field}, COUNT(1) AS count FROM {table} "
                 "GROUP BY {field} ORDER BY count DESC "
                 "LIMIT {limit}").format(field=quote(f), table=TABLE_NAME,
                                         limit=int(limit))
        queries.append(QuerySpec(query, [f], title="Top {0}".format(f)))
    return queries


def custom_query(query, fields):
    return QuerySpec(query, fields, title="Query")


def default_fields(group_by):
    """Fields needed by :func:`default_queries`."""
    fields = [group_by]
    for name in (_common.KEY_STATUS_TYPE, _common.KEY_BYTES_SENT):
        if name not in fields:
            fields.append(name)
    return fields


def _status_type_counts():
    return ", ".join(
        'COUNT(CASE WHEN {0} = {1} THEN 1 END) AS "{1}xx"'.format(
            _common.KEY_STATUS_TYPE, st)
        for st in _STATUS_TYPES)


def default_queries(group_by, having=1, order_by="count", limit=10):
    """Summary of all requests, and details grouped by a field.

    Args:
        group_by (str): field to group the details by.
        having (int, optional): minimum count of a group to show.
        order_by (str, optional): column to order groups by (descending).
        limit (int, optional): number of groups to show.

    Returns:
        list of :class:`QuerySpec`
    """
    aggregates = ("COUNT(1) AS count, AVG({0}) AS avg_bytes_sent, "
                  "{1}").format(_common.KEY_BYTES_SENT, _status_type_counts())
    summary = "SELECT {0} FROM {1}".format(aggregates, TABLE_NAME)
    detailed = ("SELECT {group_by}, {aggregates} FROM {table} "
                "GROUP BY {group_by} HAVING count >= {having} "
                "ORDER BY {order_by} DESC LIMIT {limit}").format(
        group_by=quote(group_by), aggregates=aggregates, table=TABLE_NAME,
        having=int(having), order_by=order_by, limit=int(limit))
    fields = default_fields(group_by)
    return [QuerySpec(summary, fields, title="Summary"),
            QuerySpec(detailed, fields, title="Detailed")]


def _read_only(action, arg1, arg2, dbname, source):
    if action in (sqlite3.SQLITE_SELECT, sqlite3.SQLITE_READ,
                  sqlite3.SQLITE_FUNCTION, sqlite3.SQLITE_RECURSIVE):
        return sqlite3.SQLITE_OK
    return sqlite3.SQLITE_DENY


def _allow_all(action, arg1, arg2, dbname, source):
    return sqlite3.SQLITE_OK


class Processor:
    """Owner of the log table.

    Records are added with :meth:`process`,
    and the queries are run with :meth:`report`.
    These two must not be called concurrently.

    Args:
        fields (list of str): fields (i.e., columns of the log table).
            Duplicated names are ignored.
        queries (list of :class:`QuerySpec`): queries to run in report.
        variables (list of str, optional): additional acceptable field names,
            usually the variables of the log format in use.
    """

    def __init__(self, fields, queries, variables=None):
        self.fields = self._validate_fields(fields, variables or [])
        self.queries = list(queries)
        self._conn = sqlite3.connect(":memory:")
        self._create_table()

    @staticmethod
    def _validate_fields(fields, variables):
        l_field = []
        for name in fields:
            if name in l_field:
                continue
            if not (name in DERIVED or is_known(name) or name in variables):
                msg = "unknown field {0!r}".format(name)
                raise _common.FieldError(msg)
            l_field.append(name)
        if len(l_field) == 0:
            raise _common.FieldError("no fields given")
        return l_field

    def _create_table(self):
        columns = []
        for name in self.fields:
            if field_kind(name).numeric:
                columns.append(quote(name) + " INTEGER")
            else:
                columns.append(quote(name) + " TEXT")
        ddl = "CREATE TABLE {0} ({1})".format(TABLE_NAME, ", ".join(columns))
        _logger.debug("create table: %s", ddl)
        with self._conn:
            self._conn.execute(ddl)

    def _insert_statement(self):
        columns = ", ".join(quote(name) for name in self.fields)
        params = ", ".join(":" + name for name in self.fields)
        return "INSERT INTO {0} ({1}) VALUES ({2})".format(
            TABLE_NAME, columns, params)

    def process(self, records):
        """Insert records into the log table.
        Records are inserted in one transaction;
        if any of them fails, none of them is added.

        Args:
            records (iterable of dict): records from
                :func:`~extract.extract`, with all fields of this processor.

        Returns:
            int: number of inserted records.
        """
        try:
            with self._conn:
                cursor = self._conn.executemany(self._insert_statement(), records)
        except sqlite3.Error as e:
            raise _common.StoreError(str(e)) from e
        n_rows = max(cursor.rowcount, 0)
        _logger.debug("%d records inserted", n_rows)
        return n_rows

    def row_count(self):
        cursor = self._conn.execute("SELECT COUNT(1) FROM {0}".format(TABLE_NAME))
        return cursor.fetchone()[0]

    def execute(self, spec):
        """Run one query. The log table is read only in the query.

        Returns:
            :class:`QueryResult`
        """
        _logger.debug("query: %s", spec.query)
        self._conn.set_authorizer(_read_only)
        try:
            cursor = self._conn.execute(spec.query)
            rows = cursor.fetchall()
        except (sqlite3.Error, sqlite3.Warning) as e:
            raise _common.QueryError(str(e)) from e
        finally:
            self._conn.set_authorizer(_allow_all)
        columns = [desc[0] for desc in cursor.description or []]
        return QueryResult(spec, columns, rows)

    def report(self):
        """Run all queries.

        Returns:
            list of :class:`QueryResult`
        """
        return [self.execute(spec) for spec in self.queries]

    def close(self):
        self._conn.close()


def generate_processor(fields=None, queries=None, variables=None,
                       group_by=_common.KEY_REQUEST_PATH, having=1,
                       order_by="count", limit=10):
    """Generate :class:`Processor` for a run.

    If no queries are given, the default report is used:
    :func:`default_queries` on the fields of :func:`default_fields`.

    Args:
        fields (list of str, optional): fields for the given queries.
        queries (list of :class:`QuerySpec`, optional)
        variables (list of str, optional): see :class:`Processor`.
        group_by, having, order_by, limit: options of the default report.

    Returns:
        :class:`Processor`
    """
    if queries is None:
        queries = default_queries(group_by, having=having,
                                  order_by=order_by, limit=limit)
        if fields is None:
            fields = default_fields(group_by)
    elif fields is None:
        raise _common.FieldError("no fields given")
    return Processor(fields, queries, variables=variables)
