import unittest

from accesstop import extract as ex
from accesstop.pattern import format_to_pattern
from accesstop.variable import Kind

from .message import combined_lines


class TestExtract(unittest.TestCase):

    def test_status_type(self):
        assert ex.status_type("404") == 4
        assert ex.status_type("200") == 2
        assert ex.status_type("99") == 0
        assert ex.status_type("") == 0
        assert ex.status_type("abc") == 0
        assert ex.status_type("-") == 0
        assert ex.status_type(None) == 0
        assert ex.status_type("70000") == 0

    def test_bytes_sent(self):
        assert ex.bytes_sent("1234") == 1234
        assert ex.bytes_sent("") == 0
        assert ex.bytes_sent("-1") == 0
        assert ex.bytes_sent(" 12") == 0
        assert ex.bytes_sent("1_000") == 0
        assert ex.bytes_sent("4294967295") == 4294967295
        assert ex.bytes_sent("4294967296") == 0
        assert ex.bytes_sent(None) == 0

    def test_combined(self):
        pattern = format_to_pattern("combined")
        fields = ["request_path", "status_type", "bytes_sent", "remote_addr"]
        record = ex.extract(combined_lines[2], pattern, fields)
        assert record == {"request_path": "POST /api HTTP/1.1",
                          "status_type": 5,
                          "bytes_sent": 1234,
                          "remote_addr": "2001:db8::1"}
        assert list(record) == fields

    def test_request_path(self):
        pattern = format_to_pattern('"$request" $request_uri')
        record = ex.extract('"GET /a?x=1 HTTP/1.1" /a?x=1', pattern,
                            ["request_path"])
        assert record == {"request_path": "/a?x=1"}

        pattern = format_to_pattern('"$request"')
        record = ex.extract('"GET /a HTTP/1.1"', pattern, ["request_path"])
        assert record == {"request_path": "GET /a HTTP/1.1"}

        pattern = format_to_pattern('$status')
        record = ex.extract('200', pattern, ["request_path"])
        assert record == {"request_path": ""}

    def test_unparsable_numbers(self):
        pattern = format_to_pattern("$status $body_bytes_sent")
        record = ex.extract("- -1", pattern, ["status_type", "bytes_sent"])
        assert record == {"status_type": 0, "bytes_sent": 0}

        # no source variables in the format
        pattern = format_to_pattern("$remote_addr")
        record = ex.extract("192.0.2.1", pattern, ["status_type", "bytes_sent"])
        assert record == {"status_type": 0, "bytes_sent": 0}

    def test_mismatch_and_empty(self):
        pattern = format_to_pattern('$status "$http_referer"')
        record = ex.extract('200 ""', pattern, ["http_referer", "host"])
        assert record == {"http_referer": "", "host": ""}
        assert ex.extract("garbage", pattern, ["http_referer"]) is None

    def test_extract_lines(self):
        pattern = format_to_pattern("combined")
        lines = [combined_lines[0] + "\n", "broken line\n", combined_lines[1]]
        records = list(ex.extract_lines(lines, pattern, ["status_type"]))
        assert records == [{"status_type": 2}, {"status_type": 4}]

    def test_field_kind(self):
        assert ex.field_kind("status_type") is Kind.INTEGER
        assert ex.field_kind("bytes_sent") is Kind.INTEGER
        assert ex.field_kind("request_path") is Kind.STRING
        assert ex.field_kind("status") is Kind.INTEGER
        assert ex.field_kind("unknown_one") is Kind.RAW
