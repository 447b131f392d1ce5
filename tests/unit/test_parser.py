import pytest

import json_parser as jp
import json_sink as js


def test_parse_builds_native_tree():
    assert jp.parse('{"a": [1, 2.0, -3e2], "b": {"c": null, "d": true}, "e": "x"}') == {
        "a": [1, 2.0, -300.0], "b": {"c": None, "d": True}, "e": "x",
    }


def test_numbers_keep_int_float_distinction():
    ints, floats = jp.parse("[[1, -0, 10], [1.0, 1e2]]")
    assert all(type(n) is int for n in ints)
    assert all(type(n) is float for n in floats)


def test_scalar_root_allowed():
    assert jp.parse(" true ") is True
    assert jp.parse("null") is None
    assert jp.parse('"s"') == "s"


def test_empty_input():
    with pytest.raises(SyntaxError) as ei:
        jp.parse("   ")
    assert "unexpected end of input" in str(ei.value)


def test_extra_data_reports_offset():
    with pytest.raises(SyntaxError) as ei:
        jp.parse("[1] 2")
    assert "extra data after root value at offset 4" in str(ei.value)


def test_duplicate_key_rejected_by_default():
    with pytest.raises(SyntaxError) as ei:
        jp.parse('{"a":1,"a":2}')
    assert "duplicate key 'a'" in str(ei.value)


def test_duplicate_key_allowed_keeps_last_value():
    assert jp.parse('{"a":1,"b":0,"a":2}', allow_dup=True) == {"a": 2, "b": 0}


def test_missing_comma_in_object_reports_expected():
    with pytest.raises(SyntaxError) as ei:
        jp.parse('{"a":1 "b":2}')
    assert "expected COMMA" in str(ei.value)


def test_missing_closing_bracket_in_array():
    with pytest.raises(SyntaxError) as ei:
        jp.parse("[1,2")
    assert "unexpected end of input" in str(ei.value)


def test_trailing_comma_rejected():
    with pytest.raises(SyntaxError) as ei:
        jp.parse("[1,]")
    assert "value expected" in str(ei.value)


def test_leading_zero_rejected():
    with pytest.raises(SyntaxError):
        jp.parse("[01]")


def test_invalid_character_reports_offset():
    with pytest.raises(SyntaxError) as ei:
        jp.parse("[1, @]")
    assert "invalid character '@' at offset 4" in str(ei.value)


def test_depth_limit():
    jp.parse("[" * 5 + "]" * 5, max_depth=5)
    with pytest.raises(SyntaxError) as ei:
        jp.parse("[" * 6 + "]" * 6, max_depth=5)
    assert "depth limit exceeded" in str(ei.value)


def test_default_depth_limit_fails_cleanly():
    deep = "[" * (jp.DEPTH_LIMIT_DEFAULT + 1) + "]" * (jp.DEPTH_LIMIT_DEFAULT + 1)
    with pytest.raises(SyntaxError):
        jp.parse(deep)


def test_escapes_decoded():
    assert jp.parse(r'"a\"b\\c\/d\b\f\n\r\té"') == 'a"b\\c/d\b\f\n\r\té'


def test_non_ascii_passes_through():
    assert jp.parse('"héllo ☃"') == "héllo ☃"


def test_surrogate_pair_joined():
    assert jp.parse(r'"\ud83d\ude00"') == "\U0001F600"


def test_invalid_hex_escape_reports_offset():
    with pytest.raises(SyntaxError) as ei:
        jp.parse('["\\u123g"]')
    assert "invalid hex escape \\u123g at offset 2" in str(ei.value)


def test_short_unicode_escape():
    with pytest.raises(SyntaxError) as ei:
        jp.parse('["\\u12"]')
    assert "short unicode escape" in str(ei.value)


def test_invalid_single_escape():
    with pytest.raises(SyntaxError) as ei:
        jp.parse('["\\q"]')
    assert "invalid escape \\q" in str(ei.value)


def test_unpaired_surrogate_detected():
    with pytest.raises(SyntaxError) as ei:
        jp.parse('["\\uD800"]')
    assert "unpaired surrogate" in str(ei.value)


def test_unterminated_string():
    with pytest.raises(SyntaxError) as ei:
        jp.parse('["abc')
    assert "unterminated string starting at offset 1" in str(ei.value)


def test_trailing_backslash_direct_call():
    with pytest.raises(SyntaxError) as ei:
        jp.decode_string('"\\"', 0)
    assert "trailing backslash in string" in str(ei.value)


def test_lex_token_stream():
    tokens = list(jp.lex('{"k": [true]}'))
    assert [t[0] for t in tokens] == ["BRACE", "STRING", "COLON", "BRACKET", "LITERAL", "BRACKET", "BRACE"]
    assert tokens[1] == ("STRING", "k", 1)


def test_parse_into_writer_reformats_without_tree():
    w = jp.parse_into('{ "a" : [ 1 , "x" ] }', js.JsonWriter())
    assert w.getvalue() == '{"a":[1,"x"]}'
