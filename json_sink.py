# json_sink.py
# Event sinks for replaying JSON-like trees
#
# =============================================================================
#  SINK CONTRACT
# =============================================================================
#
# A sink receives a linear replay of a JSON value, one callback per shape.
# Both the text parser (json_parser.parse_into) and the cursor
# (json_cursor.JsonCursor.expect_any_value) drive sinks, so a document can be
# parsed straight into a tree, or a cursor position can be written back out
# as text, with the same two classes.
#
# Scope closure is explicit: every start_object/start_array is matched by an
# end_object/end_array. Sinks never infer closure from call nesting.
#
# =============================================================================
#  REFERENCES
# =============================================================================
# [1] RFC 8259 - The JavaScript Object Notation (JSON) standard, section 7
# =============================================================================

import io
import math
from abc import ABC, abstractmethod
from typing import Any, List, Optional, TextIO, Union

Number = Union[int, float]


# ---------------------------------------------------------------------------
# ABSTRACT SINK
# ---------------------------------------------------------------------------
class JsonSink(ABC):
    """
    Receiver of shape-by-shape JSON events.

    Object members arrive as add_key(name) followed by exactly one value
    (a scalar callback or a nested start/end pair).
    """

    @abstractmethod
    def start_object(self) -> None: ...

    @abstractmethod
    def end_object(self) -> None: ...

    @abstractmethod
    def start_array(self) -> None: ...

    @abstractmethod
    def end_array(self) -> None: ...

    @abstractmethod
    def add_key(self, name: str) -> None: ...

    @abstractmethod
    def add_null(self) -> None: ...

    @abstractmethod
    def add_number(self, n: Number) -> None: ...

    @abstractmethod
    def add_bool(self, b: bool) -> None: ...

    @abstractmethod
    def add_string(self, s: str) -> None: ...


# ---------------------------------------------------------------------------
# TREE BUILDER
# ---------------------------------------------------------------------------
class TreeBuilder(JsonSink):
    """
    Sink that materializes native Python values: dict, list, str, int,
    float, bool and None.

    Duplicate keys overwrite earlier ones, keeping the first insertion
    position. Rejecting duplicates is the parser's job, not the builder's.
    """

    def __init__(self):
        self._stack: List[Any] = []
        self._keys: List[Optional[str]] = []
        self._root: Any = None
        self._done = False

    @property
    def result(self) -> Any:
        if not self._done:
            raise RuntimeError("incomplete JSON value")
        return self._root

    def _add(self, value: Any) -> None:
        if self._done:
            raise RuntimeError("value after complete root")
        if not self._stack:
            self._root = value
            self._done = True
            return
        top = self._stack[-1]
        if isinstance(top, dict):
            key = self._keys[-1]
            if key is None:
                raise RuntimeError("object value without key")
            top[key] = value
            self._keys[-1] = None
        else:
            top.append(value)

    def _open(self, container: Any) -> None:
        self._add(container)
        # _add marks a root container as done; it is only done once closed.
        self._done = False
        self._stack.append(container)
        self._keys.append(None)

    def _close(self, kind: type) -> None:
        if not self._stack or not isinstance(self._stack[-1], kind):
            raise RuntimeError(f"unbalanced end of {kind.__name__}")
        if self._keys[-1] is not None:
            raise RuntimeError("key without value")
        self._stack.pop()
        self._keys.pop()
        if not self._stack:
            self._done = True

    def start_object(self) -> None:
        self._open({})

    def end_object(self) -> None:
        self._close(dict)

    def start_array(self) -> None:
        self._open([])

    def end_array(self) -> None:
        self._close(list)

    def add_key(self, name: str) -> None:
        if not self._stack or not isinstance(self._stack[-1], dict):
            raise RuntimeError("key outside of object")
        if self._keys[-1] is not None:
            raise RuntimeError("key without value")
        self._keys[-1] = name

    def add_null(self) -> None:
        self._add(None)

    def add_number(self, n: Number) -> None:
        self._add(n)

    def add_bool(self, b: bool) -> None:
        self._add(b)

    def add_string(self, s: str) -> None:
        self._add(s)


# ---------------------------------------------------------------------------
# STRING ESCAPING
# ---------------------------------------------------------------------------
_SHORT_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def _quote(s: str, ensure_ascii: bool) -> str:
    """
    Quote a string per RFC 8259. Control characters always become escapes;
    with ensure_ascii, non-ASCII code points become \\uXXXX (astral code
    points as surrogate pairs).
    """
    out = ['"']
    for ch in s:
        esc = _SHORT_ESCAPES.get(ch)
        if esc is not None:
            out.append(esc)
            continue
        code = ord(ch)
        if code < 0x20:
            out.append(f"\\u{code:04x}")
        elif ensure_ascii and code > 0x7E:
            if code > 0xFFFF:
                code -= 0x10000
                out.append(f"\\u{0xD800 | (code >> 10):04x}")
                out.append(f"\\u{0xDC00 | (code & 0x3FF):04x}")
            else:
                out.append(f"\\u{code:04x}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


# ---------------------------------------------------------------------------
# TEXT WRITER
# ---------------------------------------------------------------------------
class JsonWriter(JsonSink):
    """
    Sink that writes JSON text.

    With indent=None the output is compact (no whitespace at all). With an
    integer indent every member and element goes on its own line; empty
    containers stay on one line as {} or [].
    """

    def __init__(self, out: Optional[TextIO] = None, *, indent: Optional[int] = None,
                 ensure_ascii: bool = False):
        self._own_buffer = out is None
        self._out = io.StringIO() if out is None else out
        self._indent = indent
        self._ensure_ascii = ensure_ascii
        # One entry per open container: number of members written so far.
        self._counts: List[int] = []
        self._after_key = False

    def getvalue(self) -> str:
        if not self._own_buffer:
            raise RuntimeError("writer does not own its output stream")
        return self._out.getvalue()

    def _newline(self) -> None:
        if self._indent is not None:
            self._out.write("\n" + " " * (self._indent * len(self._counts)))

    def _before_value(self) -> None:
        if self._after_key:
            self._after_key = False
            return
        if self._counts:
            if self._counts[-1]:
                self._out.write(",")
            self._counts[-1] += 1
            self._newline()

    def _open(self, bracket: str) -> None:
        self._before_value()
        self._out.write(bracket)
        self._counts.append(0)

    def _close(self, bracket: str) -> None:
        if not self._counts:
            raise RuntimeError(f"unbalanced {bracket}")
        count = self._counts.pop()
        if count:
            self._newline()
        self._out.write(bracket)

    def start_object(self) -> None:
        self._open("{")

    def end_object(self) -> None:
        self._close("}")

    def start_array(self) -> None:
        self._open("[")

    def end_array(self) -> None:
        self._close("]")

    def add_key(self, name: str) -> None:
        self._before_value()
        self._out.write(_quote(name, self._ensure_ascii))
        self._out.write(":" if self._indent is None else ": ")
        self._after_key = True

    def add_null(self) -> None:
        self._before_value()
        self._out.write("null")

    def add_number(self, n: Number) -> None:
        if isinstance(n, float):
            if not math.isfinite(n):
                raise ValueError(f"number {n!r} is not representable in JSON")
            text = repr(n)
        else:
            text = str(int(n))
        self._before_value()
        self._out.write(text)

    def add_bool(self, b: bool) -> None:
        self._before_value()
        self._out.write("true" if b else "false")

    def add_string(self, s: str) -> None:
        self._before_value()
        self._out.write(_quote(s, self._ensure_ascii))
