from pmacct_relay.core.models import FlowRecord
from pmacct_relay.core.parser import (
    FIELD_LAYOUT,
    U64_MAX,
    looks_like_record,
    parse_record,
    parse_u64,
    tokenize,
)


def _line(src="10.0.0.1", dst="10.0.0.2", nbytes="100", extra=""):
    cols = ["7", "unknown", "aa:bb:cc:dd:ee:ff", "11:22:33:44:55:66", "0", "0", "0",
            src, dst, "1234", "443", "0", "tcp", "0", "3", "1", nbytes]
    return " ".join(cols) + extra


def test_parse_pmacct_sample_line(sample_line):
    rec = parse_record(sample_line)
    assert rec == FlowRecord(src="202.4.228.250", dst="180.76.5.15", bytes=34954)


def test_parse_accepts_trailing_newline_and_wide_whitespace(sample_line):
    wide = sample_line.replace(" ", "   \t") + "\n"
    rec = parse_record(wide)
    assert rec is not None
    assert rec.src == "202.4.228.250"
    assert rec.dst == "180.76.5.15"
    assert rec.bytes == 34954


def test_parse_ignores_tokens_after_bytes():
    rec = parse_record(_line(extra=" trailing junk"))
    assert rec is not None
    assert rec.bytes == 100


def test_ip_tokens_are_not_validated():
    rec = parse_record(_line(src="not-an-ip", dst="fe80::1"))
    assert rec.src == "not-an-ip"
    assert rec.dst == "fe80::1"


def test_short_line_is_not_a_record(sample_line):
    tokens = sample_line.split()
    assert parse_record(" ".join(tokens[:15])) is None
    assert parse_record(" ".join(tokens[:16])) is None


def test_non_numeric_bytes_is_not_a_record():
    assert parse_record(_line(nbytes="lots")) is None
    assert parse_record(_line(nbytes="12ab")) is None
    assert parse_record(_line(nbytes="-5")) is None
    assert parse_record(_line(nbytes="0x10")) is None


def test_bytes_overflow_is_not_a_record():
    assert parse_record(_line(nbytes=str(U64_MAX))).bytes == U64_MAX
    assert parse_record(_line(nbytes=str(U64_MAX + 1))) is None


def test_parse_u64_rejects_non_ascii_digits():
    assert parse_u64("٣") is None
    assert parse_u64("42") == 42


def test_first_character_filter(sample_line):
    assert looks_like_record(sample_line)
    assert not looks_like_record("")
    assert not looks_like_record(" " + sample_line)
    assert not looks_like_record("WARN ( default/memory ): sample pool exhausted")
    assert not looks_like_record("ID     CLASS    SRC_MAC ...")


def test_layout_matches_pmacct_header():
    assert len(FIELD_LAYOUT) == 17
    assert FIELD_LAYOUT.index("src_ip") == 7
    assert FIELD_LAYOUT.index("dst_ip") == 8
    assert FIELD_LAYOUT[-1] == "bytes"


def test_tokenize_splits_on_ascii_whitespace_only():
    assert tokenize("a \tb\r\n c\x0bd\x0ce") == ["a", "b", "c", "d", "e"]
    assert tokenize("10.0.0.1\x1cx 10.0.0.2\u2003y") == ["10.0.0.1\x1cx", "10.0.0.2\u2003y"]


def test_unicode_space_does_not_split_ip_token():
    rec = parse_record(_line(src="10.0.0.1\u00a0evil"))
    assert rec is not None
    assert rec.src == "10.0.0.1\u00a0evil"
    assert rec.dst == "10.0.0.2"
