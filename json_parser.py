# json_parser.py
# JSON text front end: turns source text into events for a sink
#
# =============================================================================
#  PARSER IMPLEMENTATION: RECURSIVE DESCENT INTO A SINK
# =============================================================================
#
# The cursor in json_cursor.py only walks trees that already exist. This
# module is where such trees usually come from. Rather than building dicts
# and lists itself, the parser replays each value into a json_sink.JsonSink;
# parse() plugs in a TreeBuilder to get the familiar native tree, and the
# same events can feed a JsonWriter for re-formatting without any tree.
#
# 1. JSON grammar is LL(1): one token of lookahead (LookAhead) is enough.
# 2. The lexer is one compiled regex with named groups; every character of
#    the input must be covered by some token, or the gap is reported.
# 3. Depth is bounded (DEPTH_LIMIT_DEFAULT) so hostile nesting fails with a
#    SyntaxError instead of a RecursionError.
#
# =============================================================================
#  REFERENCES
# =============================================================================
# [1] RFC 8259 - The JavaScript Object Notation (JSON) standard
# =============================================================================

import re
from typing import Iterator, List, Optional, Tuple

from json_sink import JsonSink, TreeBuilder

# ---------------------------------------------------------------------------
# CONSTANTS AND TUNABLES
# ---------------------------------------------------------------------------
DEPTH_LIMIT_DEFAULT = 256    # Nesting bound for arrays and objects

# ---------------------------------------------------------------------------
# REGEX BLUEPRINT
# ---------------------------------------------------------------------------
_WHITESPACE = r"[ \t\n\r]+"
_NUMBER     = r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?"
_STRING     = r'"(?:[^"\\\x00-\x1F]|\\.)*"'
_LITERAL    = r"true|false|null"

_TOKEN_RE = re.compile(
    rf"(?P<STRING>{_STRING})|"
    rf"(?P<NUMBER>{_NUMBER})|"
    rf"(?P<LITERAL>{_LITERAL})|"
    r"(?P<BRACE>[{}])|"
    r"(?P<BRACKET>[\[\]])|"
    r"(?P<COMMA>,)|"
    r"(?P<COLON>:)|"
    rf"(?P<WHITESPACE>{_WHITESPACE})",
)

_LITERALS = {"true": True, "false": False, "null": None}
_SIMPLE_ESCAPES = {
    '"': '"', "\\": "\\", "/": "/",
    "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t",
}
_HEX = frozenset("0123456789abcdefABCDEF")


# ---------------------------------------------------------------------------
# TOKEN RECORD
# ---------------------------------------------------------------------------
class Token(Tuple[str, object, int]):
    """Immutable token record: (kind, value, absolute_offset)."""
    pass


# ---------------------------------------------------------------------------
# LOOKAHEAD
# ---------------------------------------------------------------------------
class LookAhead:
    """One-slot pushback over a token iterator."""

    def __init__(self, tokens: Iterator[Token]):
        self._iter = iter(tokens)
        self._buf: List[Token] = []

    def __iter__(self):
        return self

    def __next__(self) -> Token:
        if self._buf:
            return self._buf.pop()
        return next(self._iter)

    def peek(self) -> Optional[Token]:
        """Next token without consuming it, or None at end of input."""
        if not self._buf:
            try:
                self._buf.append(next(self._iter))
            except StopIteration:
                return None
        return self._buf[-1]

    def take(self) -> Token:
        try:
            return next(self)
        except StopIteration:
            raise SyntaxError("unexpected end of input") from None


# ---------------------------------------------------------------------------
# STRING DECODING
# ---------------------------------------------------------------------------
def _read_hex4(inner: str, i: int, offset: int) -> int:
    seq = inner[i:i + 6]
    if len(seq) < 6:
        raise SyntaxError(f"short unicode escape at offset {offset + i}")
    if not all(c in _HEX for c in seq[2:]):
        raise SyntaxError(f"invalid hex escape {seq} at offset {offset + i}")
    return int(seq[2:], 16)


def decode_string(raw: str, token_start: int) -> str:
    """
    Decode a quoted JSON string token, offsets reported against the source.

    Escaped surrogate pairs are joined into one code point; a lone surrogate
    escape is rejected, since it cannot be represented as valid text.
    """
    if len(raw) < 2 or raw[0] != '"' or raw[-1] != '"':
        raise SyntaxError(f"unterminated string starting at offset {token_start}")

    inner = raw[1:-1]
    base = token_start + 1
    if "\\" not in inner:
        return inner

    out: List[str] = []
    i = 0
    n = len(inner)
    while i < n:
        ch = inner[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        if i + 1 >= n:
            raise SyntaxError(f"trailing backslash in string at offset {base + i}")
        esc = inner[i + 1]
        if esc != "u":
            decoded = _SIMPLE_ESCAPES.get(esc)
            if decoded is None:
                raise SyntaxError(f"invalid escape \\{esc} at offset {base + i}")
            out.append(decoded)
            i += 2
            continue
        code = _read_hex4(inner, i, base)
        i += 6
        if 0xD800 <= code <= 0xDBFF and inner[i:i + 2] == "\\u":
            low = _read_hex4(inner, i, base)
            if 0xDC00 <= low <= 0xDFFF:
                code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                i += 6
        if 0xD800 <= code <= 0xDFFF:
            raise SyntaxError(f"unpaired surrogate in string at offset {base + i - 6}")
        out.append(chr(code))
    return "".join(out)


# ---------------------------------------------------------------------------
# LEXER
# ---------------------------------------------------------------------------
def lex(text: str) -> Iterator[Token]:
    """
    Single-pass generator producing tokens. Values arrive already converted:
    int or float for numbers, True/False/None for literals, decoded str for
    strings. Whitespace is dropped.
    """
    pos = 0
    for m in _TOKEN_RE.finditer(text):
        kind = m.lastgroup
        start = m.start()
        if start != pos:
            break
        pos = m.end()

        if kind == "WHITESPACE":
            continue
        value: object = m.group()
        if kind == "STRING":
            value = decode_string(m.group(), start)
        elif kind == "NUMBER":
            raw = m.group()
            value = float(raw) if any(c in raw for c in ".eE") else int(raw)
        elif kind == "LITERAL":
            value = _LITERALS[m.group()]
        yield Token((kind, value, start))

    if pos != len(text):
        if text[pos] == '"':
            raise SyntaxError(f"unterminated string starting at offset {pos}")
        raise SyntaxError(f"invalid character {text[pos]!r} at offset {pos}")


# ---------------------------------------------------------------------------
# PARSER UTILITY
# ---------------------------------------------------------------------------
def _expect(tokens: LookAhead, expected_kind: str, expected_value=None):
    """Consume the next token, which must be of the given kind (and value)."""
    kind, value, pos = tokens.take()
    if kind != expected_kind or (expected_value is not None and value != expected_value):
        exp = expected_kind if expected_value is None else f"{expected_kind} '{expected_value}'"
        raise SyntaxError(f"unexpected token {kind} '{value}' at offset {pos} - expected {exp}")
    return value


def _at_close(tokens: LookAhead, kind: str, bracket: str) -> bool:
    pk = tokens.peek()
    if pk is None:
        raise SyntaxError("unexpected end of input")
    if pk[0] == kind and pk[1] == bracket:
        next(tokens)
        return True
    return False


# ---------------------------------------------------------------------------
# RECURSIVE DESCENT
# ---------------------------------------------------------------------------
class _Parser:
    def __init__(self, tokens: LookAhead, sink: JsonSink, max_depth: int, allow_dup: bool):
        self.tokens = tokens
        self.sink = sink
        self.max_depth = max_depth
        self.allow_dup = allow_dup

    def value(self, depth: int) -> None:
        kind, value, pos = self.tokens.take()
        sink = self.sink
        if kind == "STRING":
            sink.add_string(value)
        elif kind == "NUMBER":
            sink.add_number(value)
        elif kind == "LITERAL":
            if value is None:
                sink.add_null()
            else:
                sink.add_bool(value)
        elif kind == "BRACE" and value == "{":
            self.object(depth + 1, pos)
        elif kind == "BRACKET" and value == "[":
            self.array(depth + 1, pos)
        else:
            raise SyntaxError(f"unexpected token {kind} '{value}' at offset {pos} - value expected")

    def array(self, depth: int, pos: int) -> None:
        if depth > self.max_depth:
            raise SyntaxError(f"depth limit exceeded at offset {pos}")
        self.sink.start_array()
        if not _at_close(self.tokens, "BRACKET", "]"):
            while True:
                self.value(depth)
                if _at_close(self.tokens, "BRACKET", "]"):
                    break
                _expect(self.tokens, "COMMA", ",")
        self.sink.end_array()

    def object(self, depth: int, pos: int) -> None:
        if depth > self.max_depth:
            raise SyntaxError(f"depth limit exceeded at offset {pos}")
        self.sink.start_object()
        seen = set()
        if not _at_close(self.tokens, "BRACE", "}"):
            while True:
                key_pos = self.tokens.peek()
                key = _expect(self.tokens, "STRING")
                if not self.allow_dup:
                    if key in seen:
                        raise SyntaxError(f"duplicate key '{key}' at offset {key_pos[2]}")
                    seen.add(key)
                _expect(self.tokens, "COLON", ":")
                self.sink.add_key(key)
                self.value(depth)
                if _at_close(self.tokens, "BRACE", "}"):
                    break
                _expect(self.tokens, "COMMA", ",")
        self.sink.end_object()


# ---------------------------------------------------------------------------
# PUBLIC API
# ---------------------------------------------------------------------------
def parse_into(text: str, sink: JsonSink, *, max_depth: int = DEPTH_LIMIT_DEFAULT,
               allow_dup: bool = False) -> JsonSink:
    """
    Parse one JSON value from text and replay it into sink.

    Any value may be the root (RFC 8259). Trailing tokens after the root
    value are rejected. Returns the sink for chaining.
    """
    tokens = LookAhead(lex(text))
    if tokens.peek() is None:
        raise SyntaxError("unexpected end of input")
    _Parser(tokens, sink, max_depth, allow_dup).value(0)
    extra = tokens.peek()
    if extra is not None:
        raise SyntaxError(f"extra data after root value at offset {extra[2]}")
    return sink


def parse(text: str, *, max_depth: int = DEPTH_LIMIT_DEFAULT, allow_dup: bool = False):
    """Parse JSON text into native Python structures."""
    builder = TreeBuilder()
    parse_into(text, builder, max_depth=max_depth, allow_dup=allow_dup)
    return builder.result
