from __future__ import annotations

import re
from typing import Dict, List, Optional

from .models import FlowRecord

# pmacct print plugin column order, one whitespace separated token each:
#
#   ID CLASS SRC_MAC DST_MAC VLAN SRC_AS DST_AS SRC_IP DST_IP SRC_PORT DST_PORT
#   TCP_FLAGS PROTOCOL TOS PACKETS FLOWS BYTES
#
#   0 unknown 00:00:00:00:00:00 00:00:00:00:00:00 0 0 0 202.4.228.250 180.76.5.15 0 0 0 ip 0 24 0 34954
#
# Everything other than source IP, destination IP and bytes is ignored.
FIELD_LAYOUT: List[str] = [
    "id",
    "class",
    "src_mac",
    "dst_mac",
    "vlan",
    "src_as",
    "dst_as",
    "src_ip",
    "dst_ip",
    "src_port",
    "dst_port",
    "tcp_flags",
    "protocol",
    "tos",
    "packets",
    "flows",
    "bytes",
]

# Columns the relay captures
CAPTURED = ("src_ip", "dst_ip", "bytes")

U64_MAX = (1 << 64) - 1

_ASCII_WHITESPACE = re.compile(r"[ \t\n\r\f\v]+")


def looks_like_record(line: str) -> bool:
    """
    Cheap pre filter applied before tokenizing.

    pmacct logs warnings to the same stdout as the records. Records always
    start with the numeric ID column, log lines never do.
    """
    return bool(line) and "0" <= line[0] <= "9"


def tokenize(line: str) -> List[str]:
    """
    Split on ASCII whitespace only. Unicode spaces and control characters
    stay inside the token they appear in.
    """
    return [token for token in _ASCII_WHITESPACE.split(line) if token]


def parse_u64(token: str) -> Optional[int]:
    """
    Plain unsigned decimal only. Signs, hex, underscores and values that do
    not fit 64 bits are rejected.
    """
    if not token.isascii() or not token.isdigit():
        return None
    value = int(token)
    if value > U64_MAX:
        return None
    return value


def extract_columns(tokens: List[str]) -> Dict[str, str]:
    """
    Map token positions to column names using FIELD_LAYOUT.

    Short lines produce a partial mapping. Tokens past the last known
    column are ignored.
    """
    return {name: tokens[i] for i, name in enumerate(FIELD_LAYOUT) if i < len(tokens)}


def parse_record(line: str) -> Optional[FlowRecord]:
    """
    Parse one pmacct line into a FlowRecord.

    Returns None when the line is not a flow record: too few tokens or a
    bytes column that is not an unsigned 64 bit decimal. That is the
    normal outcome for log noise, not an error, so nothing is raised.

    The line does not need to be newline stripped.
    """
    columns = extract_columns(tokenize(line))
    if any(name not in columns for name in CAPTURED):
        return None

    nbytes = parse_u64(columns["bytes"])
    if nbytes is None:
        return None

    return FlowRecord(src=columns["src_ip"], dst=columns["dst_ip"], bytes=nbytes)
