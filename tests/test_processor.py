import unittest

from accesstop import FieldError, QueryError, StoreError
from accesstop import processor as pr


def _records():
    return [
        {"request_path": "/a", "status_type": 2, "bytes_sent": 100},
        {"request_path": "/a", "status_type": 4, "bytes_sent": 200},
        {"request_path": "/b", "status_type": 5, "bytes_sent": 300},
    ]


FIELDS = ["request_path", "status_type", "bytes_sent"]


class TestProcessor(unittest.TestCase):

    def test_field_validation(self):
        with self.assertRaises(FieldError):
            pr.Processor(["request_path", "no_such_field"], [])
        with self.assertRaises(FieldError):
            pr.Processor([], [])

        p = pr.Processor(["status_type", "http_x_real_ip", "status"], [])
        assert p.fields == ["status_type", "http_x_real_ip", "status"]

        p = pr.Processor(["my_var"], [], variables=["my_var"])
        assert p.fields == ["my_var"]

        p = pr.Processor(["status", "status"], [])
        assert p.fields == ["status"]

    def test_process(self):
        p = pr.Processor(FIELDS, [])
        assert p.process(_records()) == 3
        assert p.process(iter(_records())) == 3
        assert p.row_count() == 6

    def test_store_error(self):
        p = pr.Processor(FIELDS, [])
        p.process(_records())
        records = _records() + [{"request_path": "/c"}]
        with self.assertRaises(StoreError):
            p.process(records)
        assert p.row_count() == 3

    def test_avg_sum(self):
        p = pr.Processor(FIELDS, [pr.avg_query(["status_type", "bytes_sent"]),
                                  pr.sum_query(["status_type", "bytes_sent"])])
        p.process(_records())
        avg, sum_ = p.report()
        assert avg.columns == ["AVG(status_type)", "AVG(bytes_sent)"]
        assert avg.rows == [(11 / 3, 200.0)]
        assert sum_.rows == [(11, 600)]

    def test_integer_variable(self):
        p = pr.Processor(["status"], [pr.sum_query(["status"])])
        p.process([{"status": "200"}, {"status": "404"}])
        assert p.report()[0].rows == [(604,)]

    def test_print(self):
        p = pr.Processor(FIELDS, [pr.print_query(["request_path"])])
        p.process(_records())
        result = p.report()[0]
        assert result.columns == ["request_path"]
        assert sorted(result.rows) == [("/a",), ("/b",)]

    def test_top(self):
        queries = pr.top_queries(["request_path", "status_type"], 10)
        p = pr.Processor(FIELDS, queries)
        p.process(_records())
        paths, status_types = p.report()
        assert paths.columns == ["request_path", "count"]
        assert paths.rows == [("/a", 2), ("/b", 1)]
        assert len(status_types.rows) == 3
        assert all(count == 1 for _, count in status_types.rows)

        p = pr.Processor(FIELDS, pr.top_queries(["request_path"], 1))
        p.process(_records())
        assert p.report()[0].rows == [("/a", 2)]

    def test_default_queries(self):
        fields = pr.default_fields("request_path")
        assert fields == FIELDS
        p = pr.Processor(fields, pr.default_queries("request_path", having=2))
        p.process(_records())
        summary, detailed = p.report()
        assert summary.columns == ["count", "avg_bytes_sent",
                                   "2xx", "3xx", "4xx", "5xx"]
        assert summary.rows == [(3, 200.0, 1, 0, 1, 1)]
        assert detailed.columns[0] == "request_path"
        assert detailed.rows == [("/a", 2, 150.0, 1, 0, 1, 0)]

    def test_default_order_by(self):
        queries = pr.default_queries("request_path", order_by="avg_bytes_sent")
        p = pr.Processor(pr.default_fields("request_path"), queries)
        p.process(_records())
        detailed = p.report()[1]
        assert [row[0] for row in detailed.rows] == ["/b", "/a"]

    def test_custom_query(self):
        query = "SELECT request_path FROM log WHERE status_type >= 4 ORDER BY request_path"
        p = pr.Processor(FIELDS, [pr.custom_query(query, FIELDS)])
        p.process(_records())
        assert p.report()[0].rows == [("/a",), ("/b",)]

    def test_query_error(self):
        for query in ["SELEC broken FROM log",
                      "SELECT no_such_column FROM log",
                      "DELETE FROM log",
                      "DROP TABLE log",
                      "SELECT 1; DELETE FROM log"]:
            p = pr.Processor(FIELDS, [pr.custom_query(query, FIELDS)])
            p.process(_records())
            with self.assertRaises(QueryError):
                p.report()
            assert p.row_count() == 3

    def test_process_after_report(self):
        p = pr.Processor(FIELDS, pr.top_queries(["request_path"], 10))
        p.process(_records())
        p.report()
        p.process(_records())
        assert p.report()[0].rows == [("/a", 4), ("/b", 2)]

    def test_keyword_fields(self):
        fields = ["order", "group"]
        queries = (pr.top_queries(["order"], 10)
                   + [pr.print_query(fields), pr.sum_query(["order"])])
        p = pr.Processor(fields, queries, variables=fields)
        p.process([{"order": "a", "group": "x"},
                   {"order": "a", "group": "y"},
                   {"order": "b", "group": "x"}])
        top, print_, sum_ = p.report()
        assert top.columns == ["order", "count"]
        assert top.rows == [("a", 2), ("b", 1)]
        assert print_.columns == fields
        assert sorted(print_.rows) == [("a", "x"), ("a", "y"), ("b", "x")]
        assert sum_.columns == ["SUM(order)"]

        p = pr.Processor(pr.default_fields("order"),
                         pr.default_queries("order"), variables=["order"])
        p.process([{"order": "a", "status_type": 2, "bytes_sent": 10}])
        detailed = p.report()[1]
        assert detailed.columns[0] == "order"
        assert detailed.rows == [("a", 1, 10.0, 1, 0, 0, 0)]

    def test_process_after_query_error(self):
        p = pr.Processor(FIELDS, [pr.custom_query("DELETE FROM log", FIELDS)])
        p.process(_records())
        with self.assertRaises(QueryError):
            p.report()
        assert p.process(_records()) == 3
        assert p.row_count() == 6

    def test_generate_processor(self):
        p = pr.generate_processor(group_by="request_path", having=2)
        assert p.fields == FIELDS
        assert [q.title for q in p.queries] == ["Summary", "Detailed"]
        p.process(_records())
        assert p.report()[1].rows == [("/a", 2, 150.0, 1, 0, 1, 0)]

        p = pr.generate_processor(["request_path"],
                                  pr.top_queries(["request_path"], 1))
        assert p.fields == ["request_path"]
        assert len(p.queries) == 1

        with self.assertRaises(FieldError):
            pr.generate_processor(None, [pr.custom_query("SELECT 1", [])])
        with self.assertRaises(FieldError):
            pr.generate_processor(["my_var"], [pr.print_query(["my_var"])])
        p = pr.generate_processor(["my_var"], [pr.print_query(["my_var"])],
                                  variables=["my_var"])
        assert p.fields == ["my_var"]
