#!/usr/bin/env python

import logging
import sys
import time

import click

import accesstop
from accesstop.processor import (avg_query, custom_query, generate_processor,
                                 print_query, sum_query, top_queries)
from accesstop.template import available_variables

STDIN = "STDIN"

_logger = logging.getLogger("accesstop")


class Options:

    def __init__(self, access_log, log_format, config, group_by, having,
                 interval, limit, no_follow, order_by, encoding):
        self.access_log = access_log
        self.log_format = log_format
        self.config = config
        self.group_by = group_by
        self.having = having
        self.interval = interval
        self.limit = limit
        self.no_follow = no_follow
        self.order_by = order_by
        self.encoding = encoding

    def __repr__(self):
        return "Options({0!r})".format(vars(self))

    def formats(self):
        if self.config is None:
            return None
        from .load import load_formats
        return load_formats(self.config, encoding=self.encoding)


def text_postprocess(line):
    return line.rstrip("\r\n")


def bin_postprocess(line, encoding="utf-8"):
    return line.decode(encoding).rstrip("\r\n")


def iter_lines(fp, encoding="utf-8"):
    if fp is None:
        for line in sys.stdin:
            yield text_postprocess(line)
    elif fp.endswith(".bz2"):
        import bz2
        with bz2.open(fp, 'rt', encoding=encoding) as f:
            for line in f:
                yield text_postprocess(line)
    elif fp.endswith(".gz"):
        import gzip
        with gzip.open(fp, 'r') as f:
            for line in f:
                yield bin_postprocess(line, encoding=encoding)
    else:
        with open(fp, 'rt', encoding=encoding) as f:
            for line in f:
                yield text_postprocess(line)


def iter_appended_lines(f):
    """Read complete lines appended to an open file since the last call."""
    while True:
        pos = f.tell()
        line = f.readline()
        if line == "":
            break
        if not line.endswith("\n"):
            # incomplete line: read it again in the next call
            f.seek(pos)
            break
        yield text_postprocess(line)


def format_value(value):
    if value is None:
        return ""
    elif isinstance(value, float):
        return "{0:.2f}".format(value)
    else:
        return str(value)


def format_result(result):
    rows = [[format_value(v) for v in row] for row in result.rows]
    widths = [len(c) for c in result.columns]
    for row in rows:
        widths = [max(w, len(v)) for w, v in zip(widths, row)]

    def _line(values):
        return " | ".join(v.ljust(w) for v, w in zip(values, widths)).rstrip()

    buf = []
    if result.spec.title:
        buf.append(result.spec.title + ":")
    buf.append(_line(result.columns))
    buf.append("-+-".join("-" * w for w in widths))
    for row in rows:
        buf.append(_line(row))
    return "\n".join(buf) + "\n"


def echo_report(processor):
    for result in processor.report():
        click.echo(format_result(result))


def follow(opts, parser, processor):
    with open(opts.access_log, "rt", encoding=opts.encoding) as f:
        while True:
            n_rows = processor.process(parser.process_lines(iter_appended_lines(f)))
            _logger.debug("%d records added", n_rows)
            click.clear()
            try:
                echo_report(processor)
            except accesstop.QueryError as e:
                click.echo("query failed: {0}".format(e), err=True)
            time.sleep(opts.interval)


def run(opts, fields, queries):
    access_log = opts.access_log
    if access_log is None:
        if click.get_text_stream("stdin").isatty():
            raise click.ClickException("STDIN is a TTY")
    _logger.info("access log: %s", access_log or STDIN)
    _logger.info("access log format: %s", opts.log_format)

    try:
        parser = accesstop.init_parser(opts.log_format, fields or [],
                                       formats=opts.formats())
        processor = generate_processor(
            fields, queries, variables=parser.template.variable_names(),
            group_by=opts.group_by, having=opts.having,
            order_by=opts.order_by, limit=opts.limit)
        parser.fields = processor.fields
        try:
            if access_log is None or opts.no_follow:
                lines = iter_lines(access_log, encoding=opts.encoding)
                processor.process(parser.process_lines(lines))
                echo_report(processor)
            else:
                follow(opts, parser, processor)
        finally:
            processor.close()
    except accesstop.AccessTopError as e:
        raise click.ClickException(str(e))
    except KeyboardInterrupt:
        pass


@click.group(invoke_without_command=True)
@click.option("--access-log", "-a", default=None,
              type=click.Path(exists=True, dir_okay=False),
              help="the access log to parse (default: stdin)")
@click.option("--format", "-f", "log_format", default=accesstop.DEFAULT_FORMAT,
              show_default=True,
              help="log format name or template to parse with")
@click.option("--config", "-c", default=None,
              type=click.Path(exists=True, dir_okay=False),
              help="nginx configuration to load log_format definitions from")
@click.option("--group-by", "-g", default=accesstop.KEY_REQUEST_PATH,
              show_default=True, help="group by this variable")
@click.option("--having", "-w", default=1, type=int, show_default=True,
              help="minimum count of a group to report")
@click.option("--interval", "-t", default=2.0, type=float, show_default=True,
              help="refresh interval in seconds when following the log")
@click.option("--limit", "-l", default=10, type=int, show_default=True,
              help="the number of records to limit for each query")
@click.option("--no-follow", "-n", is_flag=True,
              help="only report what is currently in the log file")
@click.option("--order-by", "-o", default="count", show_default=True,
              help="order of output for the default queries")
@click.option("--encoding", default="utf-8",
              help="encoding to load input data")
@click.option("--verbose", "-v", is_flag=True,
              help="verbose output to stderr")
@click.pass_context
def main(ctx, access_log, log_format, config, group_by, having,
         interval, limit, no_follow, order_by, encoding, verbose):
    """top for nginx access logs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr)

    opts = Options(access_log, log_format, config, group_by, having,
                   interval, limit, no_follow, order_by, encoding)
    _logger.debug("options: %s", opts)
    ctx.obj = opts

    if ctx.invoked_subcommand is None:
        run(opts, None, None)


@main.command()
@click.argument("fields", nargs=-1, required=True)
@click.pass_obj
def avg(opts, fields):
    """Print the average of the given fields."""
    run(opts, list(fields), [avg_query(fields)])


@main.command()
@click.pass_obj
def info(opts):
    """List the available fields as well as the access log and format being used."""
    from .preset import preset_names
    from .variable import known_names
    try:
        names = available_variables(opts.log_format, formats=opts.formats())
    except accesstop.AccessTopError as e:
        raise click.ClickException(str(e))
    click.echo("access log file: {0}".format(opts.access_log or STDIN))
    click.echo("access log format: {0}".format(opts.log_format))
    for name in accesstop.DERIVED_FIELDS:
        if name not in names:
            names.append(name)
    click.echo("available variables to query: {0}".format(", ".join(names)))
    click.echo("preset formats: {0}".format(", ".join(preset_names())))
    click.echo("known variables: {0}".format(", ".join(sorted(known_names()))))


@main.command("print")
@click.argument("fields", nargs=-1, required=True)
@click.pass_obj
def print_(opts, fields):
    """Print out the distinct values of the given fields."""
    run(opts, list(fields), [print_query(fields)])


@main.command()
@click.option("--fields", "-f", multiple=True,
              help="field to store in the log table (repeatable)")
@click.option("--query", "-q", required=True,
              help="the query on table 'log', typically quoted in shell")
@click.pass_obj
def query(opts, fields, query):
    """Supply a custom query."""
    _logger.debug("custom query: %s", query)
    run(opts, list(fields), [custom_query(query, fields)])


@main.command("sum")
@click.argument("fields", nargs=-1, required=True)
@click.pass_obj
def sum_(opts, fields):
    """Compute the sum of the given fields."""
    run(opts, list(fields), [sum_query(fields)])


@main.command()
@click.argument("fields", nargs=-1, required=True)
@click.pass_obj
def top(opts, fields):
    """Find the top values for the given fields."""
    run(opts, list(fields), top_queries(fields, opts.limit))


if __name__ == "__main__":
    main()
