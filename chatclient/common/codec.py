# chatclient/common/codec.py
"""
Wire framing for the chat protocol.

Frame layout:
    [4 bytes - payload length, unsigned big-endian]
    [N bytes - UTF-8 JSON object]

Both functions are pure; socket reads live in chatclient.net.session.
"""

import json
import struct
from typing import Any, Tuple

from pydantic import BaseModel

from chatclient.common.errors import FrameTooLarge, MalformedFrame

MAX_PACKET_SIZE = 65536
HEADER_SIZE = 4

_HEADER = struct.Struct("!I")


def encode(message: dict | BaseModel) -> bytes:
    """
    Serialize a message (plain dict or protocol model) into one frame.
    Raises FrameTooLarge when the JSON payload exceeds MAX_PACKET_SIZE.
    """
    if isinstance(message, BaseModel):
        message = message.model_dump(exclude_none=True)

    payload = json.dumps(message, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    if len(payload) > MAX_PACKET_SIZE:
        raise FrameTooLarge(len(payload), MAX_PACKET_SIZE)

    return _HEADER.pack(len(payload)) + payload


def read_length(header: bytes) -> int:
    """Parse the 4-byte length prefix, rejecting oversized frames up front."""
    if len(header) < HEADER_SIZE:
        raise MalformedFrame(f"incomplete header: {len(header)} bytes")
    (length,) = _HEADER.unpack_from(header)
    if length > MAX_PACKET_SIZE:
        raise FrameTooLarge(length, MAX_PACKET_SIZE)
    return length


def decode(buffer: bytes) -> Tuple[dict[str, Any], bytes]:
    """
    Decode the first frame in buffer.

    Returns:
      (message, remainder) where remainder is every byte after that frame,
      so pipelined buffers can be fed back in.
    """
    length = read_length(buffer)
    end = HEADER_SIZE + length
    if len(buffer) < end:
        raise MalformedFrame(f"incomplete frame: need {end} bytes, have {len(buffer)}")

    try:
        message = json.loads(buffer[HEADER_SIZE:end].decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedFrame(f"invalid JSON payload: {e}") from e

    if not isinstance(message, dict):
        raise MalformedFrame("payload is not a JSON object")

    return message, buffer[end:]
