import pytest

import json_cursor as jc
import json_sink as js


class RecordingSink(js.JsonSink):
    def __init__(self):
        self.events = []

    def start_object(self):
        self.events.append("{")

    def end_object(self):
        self.events.append("}")

    def start_array(self):
        self.events.append("[")

    def end_array(self):
        self.events.append("]")

    def add_key(self, name):
        self.events.append(("key", name))

    def add_null(self):
        self.events.append(None)

    def add_number(self, n):
        self.events.append(n)

    def add_bool(self, b):
        self.events.append(b)

    def add_string(self, s):
        self.events.append(s)


def test_emit_replays_matched_scope_events():
    sink = RecordingSink()
    jc.JsonCursor({"a": [1, None], "b": {}}).expect_any_value(sink)
    assert sink.events == ["{", ("key", "a"), "[", 1, None, "]", ("key", "b"), "{", "}", "}"]


def test_null_is_emitted_once():
    sink = RecordingSink()
    jc.JsonCursor([None]).expect_any_value(sink)
    assert sink.events == ["[", None, "]"]


def test_emit_consumes_only_the_pending_value():
    cur = jc.JsonCursor([{"x": 1}, "next"])
    cur.expect_array()
    cur.has_next()
    builder = js.TreeBuilder()
    cur.expect_any_value(builder)
    assert builder.result == {"x": 1}
    assert cur.depth == 1
    assert cur.has_next()
    assert cur.expect_string() == "next"


def test_emit_from_inside_object():
    cur = jc.JsonCursor({"skip": 0, "take": [True, "s"]})
    cur.expect_object()
    assert cur.try_key(["take"]) is None
    cur.skip_object_entry()
    assert cur.try_key(["take"]) == "take"
    writer = js.JsonWriter()
    cur.expect_any_value(writer)
    assert writer.getvalue() == '[true,"s"]'


def test_emit_round_trips_tree():
    tree = {"n": -1.5, "i": 10, "t": [True, False, None, "é"], "o": {"deep": [[]]}}
    builder = js.TreeBuilder()
    jc.JsonCursor(tree).expect_any_value(builder)
    assert builder.result == tree
    assert list(builder.result) == list(tree)


def test_emit_without_value_is_no_value():
    cur = jc.JsonCursor([])
    cur.expect_array()
    with pytest.raises(jc.NoValueError):
        cur.expect_any_value(RecordingSink())
