from __future__ import annotations

import json

from arcoutput.envelope import (
    ENVELOPE_TYPES,
    classify_line,
    complete_envelope,
    decode_envelope,
)
from arcoutput.models import Plain, Structured


def _env(**fields) -> str:
    return json.dumps(fields)


class TestClassifyLine:
    def test_phutil_out_is_log(self):
        line = _env(type="phutil:out", message="hello\n") + "\n"
        assert classify_line(line) == Structured(level="log", text="hello\n")

    def test_phutil_out_raw_is_log(self):
        assert classify_line(_env(type="phutil:out:raw", message="raw")) == Structured("log", "raw")

    def test_phutil_err_is_error(self):
        assert classify_line(_env(type="phutil:err", message="bad\n")) == Structured("error", "bad\n")

    def test_error_type_is_fatal(self):
        result = classify_line(_env(type="error", message="boom\n"))
        assert result == Structured("error", "boom\n", fatal=True)

    def test_declared_level_overrides(self):
        result = classify_line(_env(type="phutil:out", message="hm\n", level="warning"))
        assert result == Structured("warning", "hm\n")

    def test_empty_declared_level_ignored(self):
        assert classify_line(_env(type="phutil:out", message="x", level="")).level == "log"

    def test_plain_text_verbatim(self):
        assert classify_line("foo\n") == Plain("foo\n")

    def test_malformed_json_degrades(self):
        line = '{"type": "phutil:out", "message": \n'
        assert classify_line(line) == Plain(line)

    def test_json_array_is_plain(self):
        assert classify_line("[1, 2]\n") == Plain("[1, 2]\n")

    def test_missing_discriminator_is_plain(self):
        line = _env(message="no type") + "\n"
        assert classify_line(line) == Plain(line)

    def test_unknown_type_is_plain(self):
        line = _env(type="phutil:progress", message="50%") + "\n"
        assert classify_line(line) == Plain(line)

    def test_non_string_message_is_plain(self):
        line = _env(type="phutil:out", message=42)
        assert classify_line(line) == Plain(line)

    def test_extra_types(self):
        types = {**ENVELOPE_TYPES, "phutil:warn": "warning"}
        assert classify_line(_env(type="phutil:warn", message="w\n"), types) == Structured("warning", "w\n")


class TestDecodeEnvelope:
    def test_leading_whitespace_tolerated(self):
        assert decode_envelope("  " + _env(type="phutil:out", message="a") + "\r\n") is not None

    def test_non_object_prefix_skips_json(self):
        assert decode_envelope("hello {}") is None


class TestCompleteEnvelope:
    def test_whole_envelope(self):
        assert complete_envelope(_env(type="phutil:out", message="foo"))

    def test_prefix_is_incomplete(self):
        whole = _env(type="phutil:out", message="foo")
        assert not complete_envelope(whole[:-1])
        assert not complete_envelope(whole[:10])

    def test_plain_text_is_incomplete(self):
        assert not complete_envelope("building...")

    def test_unknown_object_is_incomplete(self):
        assert not complete_envelope(_env(kind="other"))

    def test_empty_tail(self):
        assert not complete_envelope("")


class TestUnhashableDiscriminator:
    def test_list_type_is_plain(self):
        line = _env(type=["phutil:out"], message="x") + "\n"
        assert classify_line(line) == Plain(line)


class TestDeeplyNested:
    def test_unterminated_nesting_is_plain(self):
        line = '{"a":' * 100000 + "\n"
        assert classify_line(line) == Plain(line)

    def test_balanced_nesting_is_not_an_envelope(self):
        tail = '{"a":' * 100000 + "1" + "}" * 100000
        assert decode_envelope(tail) is None
        assert not complete_envelope(tail)
