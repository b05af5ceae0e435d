from __future__ import annotations
from typing import Dict, List

from pmacct_relay.transports.base import Connection
from .models import FlowRecord, Observation

TRAFFIC_TYPE = "ip_traffic"


def point_tags(collection_point: str, ip: str, field: str) -> Dict[str, str]:
    return {
        "type": TRAFFIC_TYPE,
        "collection_point": collection_point,
        "ip": ip,
        "field": field,
    }


def observations_for(record: FlowRecord, collection_point: str, timestamp: int) -> List[Observation]:
    """
    Build the four points for one flow, all at the same timestamp so they
    can be correlated later.

      tx_bytes   keyed by src, bytes
      rx_bytes   keyed by dst, bytes
      dest_ip    keyed by src, dst as text
      src_ip     keyed by dst, src as text
    """
    return [
        Observation(point_tags(collection_point, record.src, "tx_bytes"), record.bytes, timestamp),
        Observation(point_tags(collection_point, record.dst, "rx_bytes"), record.bytes, timestamp),
        Observation(point_tags(collection_point, record.src, "dest_ip"), record.dst, timestamp),
        Observation(point_tags(collection_point, record.dst, "src_ip"), record.src, timestamp),
    ]


def emit_record(conn: Connection, record: FlowRecord, collection_point: str, timestamp: int) -> int:
    """
    Send the four points for one flow, in order.

    A TransportError from any send propagates immediately. Points already
    handed to the transport for this record are not withdrawn.
    Returns the number of points sent.
    """
    sent = 0
    for obs in observations_for(record, collection_point, timestamp):
        if obs.is_text:
            conn.send_text(obs.tags, obs.value, obs.timestamp)
        else:
            conn.send_integer(obs.tags, obs.value, obs.timestamp)
        sent += 1
    return sent
