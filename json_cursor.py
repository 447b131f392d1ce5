# json_cursor.py
# Pull-style cursor over an in-memory JSON-like tree
#
# =============================================================================
#  CURSOR IMPLEMENTATION: ONE PENDING SLOT, A STACK OF SCOPES
# =============================================================================
#
# JsonCursor hands a consumer the values of an already-materialized tree one
# at a time. The consumer never touches the tree's dicts and lists; it asks
# "is the next thing an object?", "give me the next key", "read this as an
# int", and the cursor keeps track of where it is.
#
# State is exactly two things:
# 1. The pending slot: the value that the next check_/try_/expect_ call will
#    look at. It is either unset (_UNSET) or holds a value, and that value
#    may be None, i.e. JSON null. The sentinel keeps "null" and "nothing to
#    read" apart.
# 2. A linked stack of frames, one per open array or object, innermost
#    first. A frame owns a fixed payload (array elements, or an object's key
#    snapshot plus the mapping) and a mutable index into it.
#
# Entering a scope (try_array/try_object) consumes the pending value and
# pushes a frame with the slot left unset. has_next()/next_key() refill the
# slot from the top frame and pop the frame when it is exhausted.
#
# end_array()/end_object() close the nearest enclosing scope of that kind,
# discarding any scopes that were opened inside it and never finished.
#
# copy() shares every frame's payload and duplicates only the indices, so a
# lookahead copy costs O(depth), not O(size).
#
# =============================================================================
#  REFERENCES
# =============================================================================
# [1] RFC 8259 - The JavaScript Object Notation (JSON) standard
# [2] RFC 6901 - JavaScript Object Notation (JSON) Pointer
# =============================================================================

import argparse
import enum
import logging
import math
import re
import sys
from abc import ABC, abstractmethod
from bisect import bisect_left
from collections.abc import Mapping, Sequence
from typing import Any, List, Optional, Tuple

import json_parser
from json_sink import JsonSink, JsonWriter, Number

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# ERRORS
# ---------------------------------------------------------------------------
class CursorError(Exception):
    """Base class for misuse of a JsonCursor."""


class NoValueError(CursorError, RuntimeError):
    """A value was requested while the pending slot is unset."""

    def __init__(self, message: str = "No value"):
        super().__init__(message)


class TypeMismatchError(CursorError, ValueError):
    """The pending value does not have the requested shape."""

    def __init__(self, message: str, value: Any):
        super().__init__(f"{message}: {value!r}")
        self.value = value


class NotInScopeError(CursorError, RuntimeError):
    """end_array()/end_object() with no such scope open."""


class OutOfOrderError(CursorError, RuntimeError):
    """Element or key iteration while not positioned at that boundary."""


class PreconditionError(CursorError, ValueError):
    """Candidate list is not strictly sorted."""


# ---------------------------------------------------------------------------
# PENDING SLOT SENTINEL
# ---------------------------------------------------------------------------
class _Unset:
    """Singleton marking an empty pending slot."""

    _instance: "Optional[_Unset]" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<unset>"

    def __bool__(self) -> bool:
        return False


_UNSET = _Unset()


# ---------------------------------------------------------------------------
# SHAPE CLASSIFICATION
# ---------------------------------------------------------------------------
class Shape(enum.Enum):
    NULL = "null"
    BOOL = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def shape_of(value: Any) -> Optional[Shape]:
    """
    Classify a tree value, or return None when it is not JSON-like.

    bool is tested before numbers since it subclasses int; str before
    Sequence since it is one.
    """
    if value is None:
        return Shape.NULL
    if isinstance(value, bool):
        return Shape.BOOL
    if isinstance(value, (int, float)):
        return Shape.NUMBER
    if isinstance(value, str):
        return Shape.STRING
    if isinstance(value, Mapping):
        return Shape.OBJECT
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return Shape.ARRAY
    return None


def _as_int(value: Any) -> Optional[int]:
    if shape_of(value) is not Shape.NUMBER:
        return None
    if isinstance(value, int):
        return value
    if math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def _check_sorted(candidates: Sequence) -> None:
    for i in range(1, len(candidates)):
        if not candidates[i - 1] < candidates[i]:
            raise PreconditionError(
                f"candidates are not sorted and unique: {candidates[i - 1]!r} before {candidates[i]!r}")


def _find(candidates: Sequence, item: str) -> Optional[str]:
    """Return the candidate equal to item, located by binary search."""
    i = bisect_left(candidates, item)
    if i < len(candidates) and candidates[i] == item:
        return candidates[i]
    return None


# ---------------------------------------------------------------------------
# SCOPE STACK
# ---------------------------------------------------------------------------
class _Frame(ABC):
    __slots__ = ("parent", "index")

    def __init__(self, parent: "Optional[_Frame]", index: int = 0):
        self.parent = parent
        self.index = index

    @abstractmethod
    def clone(self, parent: "Optional[_Frame]") -> "_Frame": ...


class _ArrayFrame(_Frame):
    __slots__ = ("elements",)

    def __init__(self, elements: Sequence, parent: Optional[_Frame], index: int = 0):
        super().__init__(parent, index)
        self.elements = elements

    def clone(self, parent: Optional[_Frame]) -> "_ArrayFrame":
        return _ArrayFrame(self.elements, parent, self.index)


class _ObjectFrame(_Frame):
    __slots__ = ("keys", "lookup")

    def __init__(self, keys: Tuple[str, ...], lookup: Mapping, parent: Optional[_Frame],
                 index: int = 0):
        super().__init__(parent, index)
        self.keys = keys
        self.lookup = lookup

    @classmethod
    def enter(cls, mapping: Mapping, parent: Optional[_Frame]) -> "_ObjectFrame":
        return cls(tuple(mapping), mapping, parent)

    def peek_key(self) -> Optional[str]:
        return self.keys[self.index] if self.index < len(self.keys) else None

    def clone(self, parent: Optional[_Frame]) -> "_ObjectFrame":
        return _ObjectFrame(self.keys, self.lookup, parent, self.index)


def _copy_chain(frame: Optional[_Frame]) -> Optional[_Frame]:
    chain = []
    while frame is not None:
        chain.append(frame)
        frame = frame.parent
    copied = None
    for original in reversed(chain):
        copied = original.clone(copied)
    return copied


# ---------------------------------------------------------------------------
# CURSOR
# ---------------------------------------------------------------------------
class JsonCursor:
    """
    Reader over a JSON-like tree of None, bool, int, float, str, sequences
    and string-keyed mappings.

    check_X() looks at the pending value and never raises. try_X() consumes
    the pending value when it has shape X and otherwise returns a "no match"
    result (False or None) without consuming. expect_X() is try_X() that
    raises TypeMismatchError instead. Every try_X()/expect_X() raises
    NoValueError when nothing is pending: call has_next() or next_key()
    first inside a scope.

    The tree is borrowed, never modified. Do not mutate it while a cursor
    is open on it.
    """

    def __init__(self, root: Any):
        self._next: Any = root
        self._stack: Optional[_Frame] = None

    @classmethod
    def _with_state(cls, pending: Any, stack: Optional[_Frame]) -> "JsonCursor":
        cursor = cls.__new__(cls)
        cursor._next = pending
        cursor._stack = stack
        return cursor

    def __repr__(self) -> str:
        return f"JsonCursor(pending={self._next!r}, depth={self.depth})"

    @property
    def depth(self) -> int:
        """Number of open scopes."""
        n = 0
        frame = self._stack
        while frame is not None:
            n += 1
            frame = frame.parent
        return n

    def _shape(self) -> Optional[Shape]:
        return None if self._next is _UNSET else shape_of(self._next)

    def _error(self, message: str) -> CursorError:
        if self._next is _UNSET:
            return NoValueError()
        return TypeMismatchError(message, self._next)

    def _require_value(self) -> None:
        if self._next is _UNSET:
            raise NoValueError()

    # -- probing -----------------------------------------------------------

    def check_array(self) -> bool:
        return self._shape() is Shape.ARRAY

    def check_object(self) -> bool:
        return self._shape() is Shape.OBJECT

    def check_null(self) -> bool:
        return self._shape() is Shape.NULL

    def check_num(self) -> bool:
        return self._shape() is Shape.NUMBER

    def check_int(self) -> bool:
        return self._next is not _UNSET and _as_int(self._next) is not None

    def check_bool(self) -> bool:
        return self._shape() is Shape.BOOL

    def check_string(self) -> bool:
        return self._shape() is Shape.STRING

    # -- speculative consumption --------------------------------------------

    def try_array(self) -> bool:
        """Enter the pending array. False, without consuming, on other shapes."""
        self._require_value()
        if self._shape() is not Shape.ARRAY:
            return False
        self._stack = _ArrayFrame(self._next, self._stack)
        self._next = _UNSET
        return True

    def try_object(self) -> bool:
        """Enter the pending object. False, without consuming, on other shapes."""
        self._require_value()
        if self._shape() is not Shape.OBJECT:
            return False
        self._stack = _ObjectFrame.enter(self._next, self._stack)
        self._next = _UNSET
        return True

    def try_null(self) -> bool:
        self._require_value()
        if self._next is None:
            self._next = _UNSET
            return True
        return False

    def try_bool(self) -> Optional[bool]:
        self._require_value()
        if self._shape() is Shape.BOOL:
            value, self._next = self._next, _UNSET
            return value
        return None

    def try_num(self) -> Optional[Number]:
        self._require_value()
        if self._shape() is Shape.NUMBER:
            value, self._next = self._next, _UNSET
            return value
        return None

    def try_int(self) -> Optional[int]:
        """
        Consume a number with no fractional part, returned as int.
        2.0 matches; 2.5 and "2" do not.
        """
        self._require_value()
        value = _as_int(self._next)
        if value is not None:
            self._next = _UNSET
        return value

    def try_double(self) -> Optional[float]:
        """Consume any number, returned as float."""
        self._require_value()
        if self._shape() is Shape.NUMBER:
            value, self._next = self._next, _UNSET
            return float(value)
        return None

    def try_string(self, candidates: Optional[Sequence[str]] = None) -> Optional[str]:
        """
        Consume the pending string.

        With candidates (sorted, no duplicates) only a string equal to one
        of them matches, and the candidate object is returned instead of the
        tree's string.
        """
        self._require_value()
        if candidates is not None:
            _check_sorted(candidates)
        if self._shape() is not Shape.STRING:
            return None
        value = self._next
        if candidates is not None:
            value = _find(candidates, value)
            if value is None:
                return None
        self._next = _UNSET
        return value

    # -- strict consumption -------------------------------------------------

    def expect_array(self) -> None:
        if not self.try_array():
            raise self._error("Not a JSON array")

    def expect_object(self) -> None:
        if not self.try_object():
            raise self._error("Not a JSON object")

    def expect_null(self) -> None:
        if not self.try_null():
            raise self._error("Not null")

    def expect_bool(self) -> bool:
        value = self.try_bool()
        if value is None:
            raise self._error("Not a boolean")
        return value

    def expect_num(self) -> Number:
        value = self.try_num()
        if value is None:
            raise self._error("Not a number")
        return value

    def expect_int(self) -> int:
        value = self.try_int()
        if value is None:
            raise self._error("Not an integer")
        return value

    def expect_double(self) -> float:
        value = self.try_double()
        if value is None:
            raise self._error("Not a double")
        return value

    def expect_string(self, candidates: Optional[Sequence[str]] = None) -> str:
        value = self.try_string(candidates)
        if value is None:
            if candidates is not None and self.check_string():
                raise self._error(f"Not one of {list(candidates)!r}")
            raise self._error("Not a string")
        return value

    def skip_any_value(self) -> None:
        self._require_value()
        self._next = _UNSET

    def expect_any_value_source(self) -> Any:
        """Consume the pending value and return it as the raw tree node."""
        self._require_value()
        value, self._next = self._next, _UNSET
        return value

    # -- scope exit ---------------------------------------------------------

    def _end(self, kind: type, name: str) -> None:
        frame = self._stack
        skipped = 0
        while frame is not None:
            if isinstance(frame, kind):
                if skipped:
                    logger.debug("end_%s discarded %d open inner scope(s)", name, skipped)
                self._stack = frame.parent
                self._next = _UNSET
                return
            skipped += 1
            frame = frame.parent
        raise NotInScopeError(f"Not inside a JSON {name}")

    def end_array(self) -> None:
        """Close the nearest enclosing array and anything opened inside it."""
        self._end(_ArrayFrame, "array")

    def end_object(self) -> None:
        """Close the nearest enclosing object and anything opened inside it."""
        self._end(_ObjectFrame, "object")

    # -- iteration ----------------------------------------------------------

    def _top_array(self) -> _ArrayFrame:
        frame = self._stack
        if self._next is not _UNSET or not isinstance(frame, _ArrayFrame):
            raise OutOfOrderError("Not before a JSON array element")
        return frame

    def _top_object(self) -> _ObjectFrame:
        frame = self._stack
        if self._next is not _UNSET or not isinstance(frame, _ObjectFrame):
            raise OutOfOrderError("Not before a JSON object key")
        return frame

    def has_next(self) -> bool:
        """Position at the next array element; False (scope closed) at the end."""
        frame = self._top_array()
        if frame.index < len(frame.elements):
            self._next = frame.elements[frame.index]
            frame.index += 1
            return True
        self._stack = frame.parent
        return False

    def next_key(self) -> Optional[str]:
        """Return the next key and position at its value; None (scope closed) at the end."""
        frame = self._top_object()
        key = frame.peek_key()
        if key is None:
            self._stack = frame.parent
            return None
        frame.index += 1
        self._next = frame.lookup[key]
        return key

    next_key_source = next_key

    def has_next_key(self) -> bool:
        frame = self._top_object()
        if frame.peek_key() is not None:
            return True
        self._stack = frame.parent
        return False

    def try_key(self, candidates: Sequence[str]) -> Optional[str]:
        """
        Read the next key only if it is one of candidates (sorted, no
        duplicates), returning the candidate object. On a miss, or when the
        object is exhausted, nothing moves and None is returned.
        """
        _check_sorted(candidates)
        frame = self._top_object()
        key = frame.peek_key()
        if key is None:
            return None
        found = _find(candidates, key)
        if found is None:
            return None
        frame.index += 1
        self._next = frame.lookup[key]
        return found

    def skip_object_entry(self) -> bool:
        """Step over the next key and its value; False (scope closed) at the end."""
        frame = self._top_object()
        if frame.peek_key() is None:
            self._stack = frame.parent
            return False
        frame.index += 1
        return True

    # -- composite ----------------------------------------------------------

    def expect_any_value(self, sink: JsonSink) -> None:
        """Consume the pending value, replaying it into sink."""
        if self.try_object():
            sink.start_object()
            key = self.next_key_source()
            while key is not None:
                sink.add_key(key)
                self.expect_any_value(sink)
                key = self.next_key_source()
            sink.end_object()
            return
        if self.try_array():
            sink.start_array()
            while self.has_next():
                self.expect_any_value(sink)
            sink.end_array()
            return
        if self.try_null():
            sink.add_null()
            return
        number = self.try_num()
        if number is not None:
            sink.add_number(number)
            return
        boolean = self.try_bool()
        if boolean is not None:
            sink.add_bool(boolean)
            return
        string = self.try_string()
        if string is not None:
            sink.add_string(string)
            return
        raise self._error("Not a JSON value")

    def copy(self) -> "JsonCursor":
        """Independent cursor at the same position, sharing the tree."""
        return self._with_state(self._next, _copy_chain(self._stack))


# ---------------------------------------------------------------------------
# JSON POINTER NAVIGATION
# ---------------------------------------------------------------------------
_INDEX_RE = re.compile(r"0|[1-9][0-9]*")


def _pointer_tokens(pointer: str) -> List[str]:
    if pointer == "":
        return []
    if not pointer.startswith("/"):
        raise ValueError(f"JSON pointer must start with '/': {pointer!r}")
    return [part.replace("~1", "/").replace("~0", "~") for part in pointer[1:].split("/")]


def seek_pointer(cursor: JsonCursor, pointer: str) -> bool:
    """
    Advance cursor to the value named by an RFC 6901 pointer.

    Object members are found with try_key, stepping over other entries;
    array elements with has_next. Returns False when the pointer does not
    resolve; the cursor position is then unspecified.
    """
    for token in _pointer_tokens(pointer):
        if cursor.try_object():
            wanted = [token]
            while cursor.try_key(wanted) is None:
                if not cursor.skip_object_entry():
                    return False
        elif cursor.try_array():
            if not _INDEX_RE.fullmatch(token):
                return False
            for _ in range(int(token)):
                if not cursor.has_next():
                    return False
                cursor.skip_any_value()
            if not cursor.has_next():
                return False
        else:
            return False
    return True


# ---------------------------------------------------------------------------
# CLI ENTRYPOINT
# ---------------------------------------------------------------------------
def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _cli(argv: List[str]) -> int:
    """
    Parse a JSON file, optionally select a sub-value by JSON pointer, and
    print it through a JsonWriter driven by the cursor.

    Exit codes: 0 on success, 1 on bad JSON, cursor misuse or an
    unresolved pointer, 2 on bad arguments (argparse).
    """
    ap = argparse.ArgumentParser(prog="json-cursor", description="Walk a JSON document with a cursor")
    ap.add_argument("file", help="JSON file to read, '-' for stdin")
    ap.add_argument("--pointer", default="", help="RFC 6901 pointer selecting the value to print")
    ap.add_argument("--indent", type=int, default=None, help="pretty-print with this indent")
    ap.add_argument("--ascii", action="store_true", help="escape non-ASCII characters")
    ap.add_argument("--max-depth", type=int, default=json_parser.DEPTH_LIMIT_DEFAULT)
    ap.add_argument("--allow-dup-keys", action="store_true")
    ap.add_argument("--tokens", action="store_true", help="dump token stream and exit")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        data = _read_source(args.file)
        if args.tokens:
            for tok in json_parser.lex(data):
                print(tok)
            return 0
        tree = json_parser.parse(data, max_depth=args.max_depth, allow_dup=args.allow_dup_keys)
        cursor = JsonCursor(tree)
        if not seek_pointer(cursor, args.pointer):
            print(f"error: pointer {args.pointer!r} does not resolve", file=sys.stderr)
            return 1
        logger.debug("pointer %r resolved at depth %d", args.pointer, cursor.depth)
        writer = JsonWriter(indent=args.indent, ensure_ascii=args.ascii)
        cursor.expect_any_value(writer)
        print(writer.getvalue())
        return 0
    except SyntaxError as exc:
        print(f"SyntaxError: {exc}", file=sys.stderr)
        return 1
    except RecursionError:
        print("error: nesting too deep for the interpreter recursion limit", file=sys.stderr)
        return 1
    except (CursorError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


def main() -> None:
    sys.exit(_cli(sys.argv[1:]))


# ---------------------------------------------------------------------------
# MAIN GUARD
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    main()
