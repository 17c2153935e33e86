# nats_latency/codec.py
# Send timestamps travel as the first 8 bytes of every payload:
# nanoseconds since the epoch, little-endian u64. The rest is filler.
import struct

from .errors import MalformedMessage

TIMESTAMP_SIZE = 8
_U64_LE = struct.Struct("<Q")


def encode_timestamp(ns):
    return _U64_LE.pack(ns)


def decode_timestamp(data):
    if len(data) < TIMESTAMP_SIZE:
        raise MalformedMessage(
            f"message of {len(data)} bytes is too short for a {TIMESTAMP_SIZE} byte timestamp"
        )
    return _U64_LE.unpack_from(data, 0)[0]


def stamp_payload(buf, ns):
    """Write ``ns`` into the leading bytes of a reusable payload buffer."""
    _U64_LE.pack_into(buf, 0, ns)
    return buf
